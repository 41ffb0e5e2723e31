# services/users.py
"""Admin-side user management.

Failures are reported with terse, generic messages; the underlying store
error only goes to the log. Sessions are stateless JWTs, so deleting a user
needs no cascade beyond the schema's own foreign keys.
"""
import logging
from typing import Union

from fastapi_users.password import PasswordHelper
from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curateurs.database import async_session_maker
from curateurs.models import User
from curateurs.permissions import UserRole, permissions_for_role
from curateurs.schemas import ActionResult, AdminUserCreate, AdminUserUpdate
from curateurs.settings.config import settings

logger = logging.getLogger(__name__)
password_helper = PasswordHelper()


async def create_user(db: AsyncSession, payload: AdminUserCreate) -> ActionResult:
    try:
        db.add(
            User(
                name=payload.name.strip(),
                email=payload.email.lower(),
                hashed_password=password_helper.hash(payload.password),
                role=payload.role,
                permissions=permissions_for_role(payload.role),
                is_superuser=payload.role == UserRole.admin,
            )
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("User creation failed for %s", payload.email)
        return ActionResult(is_success=False, status=400, message="Failed to create user")
    logger.info("User created successfully: %s (%s)", payload.email, payload.role.value)
    return ActionResult.ok("User created successfully", status=201)


async def update_user(db: AsyncSession, payload: AdminUserUpdate) -> ActionResult:
    # whole replace of the four mutable fields; diffing is the caller's job
    if not payload.id:
        logger.warning("User update refused: no user id")
        return ActionResult(is_success=False, status=400, message="Failed to update user")
    permissions = (
        list(payload.permissions) if payload.permissions is not None else permissions_for_role(payload.role)
    )
    try:
        await db.execute(
            update(User)
            .where(User.id == payload.id)
            .values(
                name=payload.name,
                email=payload.email.lower(),
                role=payload.role,
                permissions=permissions,
                is_superuser=payload.role == UserRole.admin,
            )
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("User update failed for %s", payload.id)
        return ActionResult(is_success=False, status=400, message="Failed to update user")
    logger.info("User updated successfully: %s", payload.id)
    return ActionResult.ok("User updated successfully")


async def delete_user(db: AsyncSession, user_id: str) -> ActionResult:
    try:
        await db.execute(delete(User).where(User.id == user_id).execution_options(synchronize_session=False))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("User deletion failed for %s", user_id)
        return ActionResult(is_success=False, status=400, message="Failed to delete user")
    logger.info("User deleted successfully: %s", user_id)
    return ActionResult.ok("User deleted successfully")


async def get_all_users(db: AsyncSession) -> Union[list[User], ActionResult]:
    try:
        rows = (
            await db.execute(select(User).order_by(User.created_at).execution_options(populate_existing=True))
        ).scalars().all()
    except SQLAlchemyError:
        logger.exception("Failed to fetch users")
        return ActionResult(is_success=False, status=500, message="Failed to fetch users")
    return list(rows)


# ----------------------
# Auto-create admin user
# ----------------------
async def bootstrap_admin() -> None:
    admin_email = (settings.ADMIN_EMAIL or "").strip().lower()
    admin_password = settings.ADMIN_PASSWORD

    if not admin_email or not admin_password:
        logger.warning("ADMIN_EMAIL or ADMIN_PASSWORD not set, skipping admin creation.")
        return

    async with async_session_maker() as session:
        existing = (await session.execute(select(User).where(User.email == admin_email))).scalars().first()
        if existing:
            logger.info("Admin user already exists: %s", admin_email)
            return
        result = await create_user(
            session,
            AdminUserCreate(
                name=settings.ADMIN_NAME,
                email=admin_email,
                password=admin_password,
                role=UserRole.admin,
            ),
        )
        if result.is_success:
            logger.info("Admin user created: %s", admin_email)
