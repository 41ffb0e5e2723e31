from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas import ActionResult, ArticleRead, DeleteRequest, EditorSession, ToggleRequest
from ..services import articles as article_service
from ..utils import require_permission

router = APIRouter(prefix="/api/articles", tags=["articles"])


def _envelope(result: ActionResult) -> JSONResponse:
    return JSONResponse(result.model_dump(by_alias=True), status_code=result.status)


@router.get("", response_model=list[ArticleRead])
async def list_articles(
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("read:articles")),
):
    return await article_service.get_all_articles(db)


@router.post("")
async def create_article(
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("create:articles")),
):
    return _envelope(await article_service.create_article(db, session, payload))


@router.get("/by-slug/{slug}", response_model=ArticleRead)
async def get_article_by_slug(
    slug: str,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("read:articles")),
):
    return await article_service.fetch_article_by_slug(db, slug)


@router.get("/{article_id}", response_model=ArticleRead)
async def get_article(
    article_id: str,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("read:articles")),
):
    return await article_service.fetch_article_by_id(db, article_id)


@router.patch("/{article_id}")
async def update_article(
    article_id: str,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("update:articles")),
):
    fields = dict(payload)
    slug: Optional[str] = fields.pop("slug", None) or None
    return _envelope(await article_service.update_article(db, session, article_id, fields, slug=slug))


@router.post("/{article_id}/validate")
async def validate_article(
    article_id: str,
    payload: ToggleRequest,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("validate:articles")),
):
    result = await article_service.validate_article(db, article_id, payload.value, session.name or session.email)
    return _envelope(result)


@router.post("/{article_id}/ship")
async def ship_article(
    article_id: str,
    payload: ToggleRequest,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("ship:articles")),
):
    result = await article_service.ship_article(db, article_id, payload.value, session.name or session.email)
    return _envelope(result)


@router.post("/{article_id}/delete")
async def delete_article(
    article_id: str,
    payload: DeleteRequest,
    db: AsyncSession = Depends(get_db),
    session: EditorSession = Depends(require_permission("delete:articles")),
):
    result = await article_service.delete_article(db, article_id, payload.flag, session.name or session.email)
    return _envelope(result)
