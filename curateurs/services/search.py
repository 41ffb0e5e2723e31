# services/search.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curateurs.models import Article, Slug

logger = logging.getLogger(__name__)


async def slugs_term_search(db: AsyncSession, term: str) -> Optional[list[Slug]]:
    """Case-insensitive substring match on slugs; ``%`` and ``_`` match literally.

    ``[]`` means no match; ``None`` means the store call failed.
    """
    try:
        rows = (
            await db.execute(
                select(Slug)
                .where(Slug.slug.icontains(term, autoescape=True))
                .order_by(Slug.slug)
                .execution_options(populate_existing=True)
            )
        ).scalars().all()
    except SQLAlchemyError:
        logger.exception("Error searching slugs for %r", term)
        return None
    return list(rows)


async def search_article_by_id(db: AsyncSession, article_id: str) -> Optional[Article]:
    try:
        return (
            await db.execute(
                select(Article)
                .where(Article.id == article_id)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()
    except SQLAlchemyError:
        logger.exception("Could not retrieve article %s", article_id)
        return None
