from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import ArticleRead, EditorSession, SlugRead
from ..services.search import search_article_by_id, slugs_term_search
from ..utils import require_permission

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("/slugs", response_model=list[SlugRead])
async def search_slugs(
    term: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("read:articles")),
):
    term = term.strip()
    if not term:
        raise HTTPException(status_code=400, detail="Search term is required")
    results = await slugs_term_search(db, term)
    if results is None:
        raise HTTPException(status_code=503, detail="Search is unavailable")
    return results


@router.get("/articles/{article_id}", response_model=ArticleRead)
async def search_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("read:articles")),
):
    article = await search_article_by_id(db, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article
