import logging
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, exceptions
from fastapi_users.manager import BaseUserManager
from fastapi_users.authentication import CookieTransport, AuthenticationBackend, JWTStrategy
from fastapi_users.db import SQLAlchemyUserDatabase

from .database import get_db
from .models import User
from .services.mailer import dispatch_email, render_reset_password_email, render_verification_email
from .settings.config import settings


logger = logging.getLogger(__name__)


SECRET = (settings.SECRET or "").strip()
if not SECRET or SECRET == "CHANGE_ME_SECRET":
    raise RuntimeError(
        "SECRET environment variable must be set to a strong value; the default placeholder is not allowed."
    )

# -------------------------
# Database Dependency
# -------------------------
async def get_user_db(session=Depends(get_db)):
    yield SQLAlchemyUserDatabase(session, User)

# -------------------------
# User Manager
# -------------------------
class UserManager(BaseUserManager[User, str]):
    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    def parse_id(self, value: Any) -> str:
        if value is None or not str(value).strip():
            raise exceptions.InvalidID()
        return str(value)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        # role and permissions come from the column defaults (contributor)
        logger.info("User %s registered as %s", user.id, user.role)
        await self.request_verify(user, request)

    async def on_after_forgot_password(self, user: User, token: str, request: Optional[Request] = None):
        logger.info("Password reset requested for user %s", user.id)
        link = f"{settings.BASE_URL.rstrip('/')}/resetPassword?token={token}"
        subject, text, html = render_reset_password_email(link, user.name)
        dispatch_email(user.email, subject, text, html)

    async def on_after_request_verify(self, user: User, token: str, request: Optional[Request] = None):
        logger.info("Verification email requested for user %s", user.id)
        link = f"{settings.BASE_URL.rstrip('/')}/verifiedEmail/{token}"
        subject, text, html = render_verification_email(link, user.name)
        dispatch_email(user.email, subject, text, html)

async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db)

# -------------------------
# Authentication Backend
# -------------------------
cookie_transport = CookieTransport(
    cookie_name="session",
    cookie_max_age=settings.SESSION_LIFETIME_SECONDS,
    cookie_secure=settings.COOKIE_SECURE,
    cookie_httponly=True,
)

def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(secret=SECRET, lifetime_seconds=settings.SESSION_LIFETIME_SECONDS)

auth_backend = AuthenticationBackend(
    name="jwt",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)

# -------------------------
# FastAPI Users instance
# -------------------------
fastapi_users = FastAPIUsers[User, str](
    get_user_manager,
    [auth_backend],
)

# Dependency to get currently active user
current_active_user = fastapi_users.current_user(active=True)
