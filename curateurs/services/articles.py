"""Article and slug persistence with the editorial state machine.

An article is created unvalidated and unshipped, gets validated by an editor,
then shipped (published). Deleting only tombstones the id with
``markfordeletion|`` so it can be restored.

Write operations return an :class:`ActionResult` and never raise. Read helpers
raise :class:`NotFoundError` / :class:`PersistenceError` so route handlers can
let them propagate to the error handler.
"""
from __future__ import annotations

import logging
import re
import unicodedata
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curateurs.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from curateurs.models import Article, Slug
from curateurs.permissions import TOMBSTONE_PREFIX
from curateurs.schemas import ActionResult, ArticleCreate, ArticleUpdate, EditorSession, SlugRead

logger = logging.getLogger(__name__)

_STRIPPED = re.compile(r"[*+~.()'\"!:@]")
_NOT_SLUG = re.compile(r"[^\w\s-]")
_SPACES = re.compile(r"\s+")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def make_slug(title: str) -> str:
    s = unicodedata.normalize("NFKD", title or "")
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = _STRIPPED.sub("", s)
    s = _NOT_SLUG.sub("", s)
    return _SPACES.sub("-", s.strip().lower())


def is_marked_for_deletion(article_id: Optional[str]) -> bool:
    return (article_id or "").startswith(TOMBSTONE_PREFIX)


def deletion_action_label(article_id: Optional[str]) -> str:
    return "restore" if is_marked_for_deletion(article_id) else "delete"


def _insert_ignoring_conflicts(db: AsyncSession, model):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise PersistenceError(f"Insert-or-ignore is not supported on {dialect}")


def _invalid(exc: PydanticValidationError) -> ActionResult:
    return ActionResult.failure(ValidationError(f"Invalid article payload: {exc}"))


def _urls_json(payload: Union[ArticleCreate, ArticleUpdate]) -> Optional[list[dict]]:
    if payload.urls is None:
        return None
    return [u.model_dump(mode="json", exclude_none=True) for u in payload.urls]


# ---------------------------
# Writes
# ---------------------------
async def create_slug(db: AsyncSession, slug: str, article_id: str) -> ActionResult:
    try:
        db.add(Slug(slug=slug, created_at=_now(), article_id=article_id, validated=False))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Slug creation failed for article %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not create slug: {exc}"))
    return ActionResult.ok("Slug created successfully")


async def create_article(
    db: AsyncSession,
    session: EditorSession,
    payload: Union[ArticleCreate, Mapping[str, Any]],
) -> ActionResult:
    try:
        data = payload if isinstance(payload, ArticleCreate) else ArticleCreate.model_validate(payload)
    except PydanticValidationError as exc:
        return _invalid(exc)

    slug = make_slug(data.title)
    if not slug:
        return ActionResult.failure(ValidationError("Title must produce a non-empty slug"))
    article_id = data.id or str(uuid.uuid4())
    now = _now()
    row = {
        "id": article_id,
        "slug": slug,
        "title": data.title,
        "introduction": data.introduction,
        "main": data.main,
        "main_audio_url": data.main_audio_url,
        "url_to_main_illustration": data.url_to_main_illustration,
        "author": data.author or session.name,
        "author_email": data.author_email or session.email,
        "urls": _urls_json(data),
        "created_at": now,
        "validated": False,
        "shipped": False,
    }

    # article and slug commit together or not at all
    try:
        stmt = (
            _insert_ignoring_conflicts(db, Article)
            .values(**row)
            .on_conflict_do_nothing(index_elements=["id"])
            .returning(Article.id)
        )
        inserted = (await db.execute(stmt)).scalar_one_or_none()
        if inserted is None:
            await db.rollback()
            logger.info("Article %s already exists; insert skipped", article_id)
            return ActionResult.failure(ConflictError(f"Article {article_id} already exists"))
        db.add(Slug(slug=slug, created_at=now, article_id=article_id, validated=False))
        await db.flush()
        await db.commit()
    except (SQLAlchemyError, PersistenceError) as exc:
        await db.rollback()
        logger.exception("Article creation failed for %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not create article: {exc}"))

    logger.info("Article %s created by %s (slug=%s)", article_id, session.email, slug)
    return ActionResult.ok("Article created successfully")


async def update_article(
    db: AsyncSession,
    session: EditorSession,
    article_id: Optional[str],
    fields: Union[ArticleUpdate, Mapping[str, Any], None],
    slug: Optional[str] = None,
) -> ActionResult:
    if not article_id:
        return ActionResult.failure(ValidationError("Article id is required"))
    try:
        data = fields if isinstance(fields, ArticleUpdate) else ArticleUpdate.model_validate(fields or {})
    except PydanticValidationError as exc:
        return _invalid(exc)

    changes = data.model_dump(exclude_unset=True, exclude={"urls"})
    if "urls" in data.model_fields_set:
        changes["urls"] = _urls_json(data)
    new_slug = slug or (make_slug(changes["title"]) if changes.get("title") is not None else None)
    if new_slug == "":
        return ActionResult.failure(ValidationError("Title must produce a non-empty slug"))
    if new_slug:
        changes["slug"] = new_slug
    changes["updated_at"] = _now()
    changes["updated_by"] = session.name or session.email

    messages: list[str] = []
    try:
        if new_slug:
            res = await db.execute(
                update(Slug)
                .where(Slug.article_id == article_id)
                .values(slug=new_slug)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount:
                messages.append("Slug updated successfully.")
            else:
                messages.append(f"No slug found for article {article_id}.")
        res = await db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if not res.rowcount:
            await db.rollback()
            messages.append(f"Could not find article with id {article_id}")
            return ActionResult(is_success=False, status=NotFoundError.status, message=" ".join(messages))
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Article update failed for %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not update article: {exc}"))

    messages.append("Article updated successfully")
    logger.info("Article %s updated by %s (%s)", article_id, session.email, ", ".join(sorted(changes)))
    return ActionResult.ok(" ".join(messages))


async def validate_article(db: AsyncSession, article_id: str, value: bool, updated_by: str) -> ActionResult:
    values = {"validated": value, "updated_by": updated_by, "updated_at": _now()}
    if not value:
        # a shipped article cannot stay online unvalidated
        values["shipped"] = False
    try:
        res = await db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Article validation failed for %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not validate article: {exc}"))
    if not res.rowcount:
        logger.warning("validate_article matched no article with id %s", article_id)
    return ActionResult.ok("Article validated successfully")


async def ship_article(db: AsyncSession, article_id: str, value: bool, updated_by: str) -> ActionResult:
    try:
        current = (
            await db.execute(select(Article.shipped, Article.validated).where(Article.id == article_id))
        ).first()
    except SQLAlchemyError as exc:
        await db.rollback()
        return ActionResult.failure(PersistenceError(f"Could not ship article: {exc}"))

    if current is None:
        return ActionResult.failure(NotFoundError(f"Could not find article with id {article_id}"))
    if not current.validated:
        return ActionResult.failure(ConflictError("Article must be validated first before shipping"))
    if bool(current.shipped) == value:
        return ActionResult.failure(ConflictError("Article already has the same shipping status"))

    now = _now()
    values = {"shipped": value, "updated_by": updated_by, "updated_at": now}
    if value:
        values["published_at"] = now
    try:
        await db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Article shipping failed for %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not ship article: {exc}"))

    logger.info("Article %s shipped=%s by %s", article_id, value, updated_by)
    return ActionResult.ok("Article shipped successfully" if value else "Article taken offline successfully")


async def delete_article(db: AsyncSession, article_id: str, flag: bool, updated_by: str) -> ActionResult:
    """Tombstone (``flag=True``) or restore (``flag=False``) an article."""
    if not article_id:
        return ActionResult.failure(ValidationError("Article id is required"))
    if flag:
        if is_marked_for_deletion(article_id):
            return ActionResult.failure(ConflictError("Article is already marked for deletion"))
        new_id = f"{TOMBSTONE_PREFIX}{article_id}"
    else:
        if not is_marked_for_deletion(article_id):
            return ActionResult.failure(ConflictError("Article is not marked for deletion"))
        new_id = article_id[len(TOMBSTONE_PREFIX):]

    try:
        res = await db.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(id=new_id, updated_by=updated_by, updated_at=_now())
            .execution_options(synchronize_session=False)
        )
        if not res.rowcount:
            await db.rollback()
            return ActionResult.failure(NotFoundError(f"Could not find article with id {article_id}"))
        # ON UPDATE CASCADE already moved them on PostgreSQL; sqlite does not enforce FKs by default
        await db.execute(
            update(Slug)
            .where(Slug.article_id == article_id)
            .values(article_id=new_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Article deletion failed for %s", article_id)
        return ActionResult.failure(PersistenceError(f"Could not delete article: {exc}"))

    logger.info("Article %s -> %s by %s", article_id, new_id, updated_by)
    return ActionResult.ok("Article deleted successfully" if flag else "Article restored successfully")


# ---------------------------
# Reads (raise)
# ---------------------------
async def fetch_article_by_id(db: AsyncSession, article_id: str) -> Article:
    try:
        article = (
            await db.execute(
                select(Article)
                .where(Article.id == article_id)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()
    except SQLAlchemyError as exc:
        logger.exception("Lookup failed for article %s", article_id)
        raise PersistenceError(f"Could not find article with id {article_id}") from exc
    if article is None:
        raise NotFoundError(f"Could not find article with id {article_id}")
    return article


async def fetch_article_by_slug(db: AsyncSession, slug: str) -> Article:
    try:
        article = (
            await db.execute(
                select(Article)
                .where(Article.slug == slug)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()
    except SQLAlchemyError as exc:
        logger.exception("Lookup failed for slug %s", slug)
        raise PersistenceError(f"Could not find article with slug {slug}") from exc
    if article is None:
        raise NotFoundError(f"Could not find article with slug {slug}")
    return article


async def get_all_articles(db: AsyncSession) -> list[Article]:
    try:
        rows = (
            await db.execute(
                select(Article).order_by(Article.created_at).execution_options(populate_existing=True)
            )
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("Listing articles failed")
        raise PersistenceError("Could not find any articles!") from exc
    return list(rows)


async def get_all_slugs(db: AsyncSession) -> list[SlugRead]:
    try:
        rows = (
            await db.execute(
                select(Slug).order_by(Slug.created_at).execution_options(populate_existing=True)
            )
        ).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("Listing slugs failed")
        raise PersistenceError("Could not find any slugs!") from exc
    return [SlugRead.model_validate(s) for s in rows]


__all__ = [
    "make_slug",
    "is_marked_for_deletion",
    "deletion_action_label",
    "create_slug",
    "create_article",
    "update_article",
    "validate_article",
    "ship_article",
    "delete_article",
    "fetch_article_by_id",
    "fetch_article_by_slug",
    "get_all_articles",
    "get_all_slugs",
]
