import enum
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from fastapi_users import schemas
from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator

from .errors import ServiceError
from .permissions import TOMBSTONE_PREFIX, UserRole


# =========================
# RESULT ENVELOPE
# =========================
class ActionResult(BaseModel):
    """Uniform outcome of a write operation, serialized as ``{isSuccess, status, message}``."""

    is_success: bool = Field(serialization_alias="isSuccess")
    status: int
    message: str

    @classmethod
    def ok(cls, message: str, status: int = 200) -> "ActionResult":
        return cls(is_success=True, status=status, message=message)

    @classmethod
    def failure(cls, exc: ServiceError) -> "ActionResult":
        return cls(is_success=False, status=exc.status, message=exc.message)


# =========================
# SESSION
# =========================
@dataclass(frozen=True)
class EditorSession:
    """Who is calling; built once per request from the authenticated user."""

    user_id: str
    name: str
    email: str
    role: UserRole
    permissions: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_user(cls, user) -> "EditorSession":
        return cls(
            user_id=str(user.id),
            name=user.name or "",
            email=user.email,
            role=UserRole(user.role),
            permissions=tuple(user.permissions or ()),
        )

    def can(self, permission: str) -> bool:
        return permission in self.permissions


# =========================
# USER SCHEMAS
# =========================
class UserRead(schemas.BaseUser[str]):
    name: str
    role: UserRole
    permissions: List[str] = []


class UserCreate(schemas.BaseUserCreate):
    name: str


class UserUpdate(schemas.BaseUserUpdate):
    name: Optional[str] = None


class AdminUserCreate(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=8)
    role: UserRole = UserRole.contributor


class AdminUserUpdate(BaseModel):
    """``id`` comes from the route path; ``permissions`` default to the role's set."""

    id: Optional[str] = None
    name: str = Field(min_length=2)
    email: EmailStr
    role: UserRole
    permissions: Optional[List[str]] = None


# =========================
# ARTICLE SCHEMAS
# =========================
class UrlType(str, enum.Enum):
    website = "website"
    videos = "videos"
    audio = "audio"
    social = "social"
    image = "image"


class UrlItem(BaseModel):
    type: UrlType
    url: str
    credits: Optional[str] = Field(default=None, max_length=100)


def _parse_urls(value: Any) -> Any:
    # forms post urls as a serialized JSON array
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in urls: {exc}") from exc
    return value


class ArticleCreate(BaseModel):
    id: Optional[str] = None
    title: str = Field(min_length=1)
    introduction: str = ""
    main: str = ""
    main_audio_url: str = ""
    url_to_main_illustration: str = ""
    author: Optional[str] = None
    author_email: Optional[str] = None
    urls: Optional[List[UrlItem]] = None

    @field_validator("urls", mode="before")
    @classmethod
    def decode_urls(cls, value):
        return _parse_urls(value)


class ArticleUpdate(BaseModel):
    """Only fields explicitly present are written."""

    title: Optional[str] = None
    introduction: Optional[str] = None
    main: Optional[str] = None
    main_audio_url: Optional[str] = None
    url_to_main_illustration: Optional[str] = None
    author: Optional[str] = None
    author_email: Optional[str] = None
    published_at: Optional[datetime] = None
    urls: Optional[List[UrlItem]] = None

    @field_validator("urls", mode="before")
    @classmethod
    def decode_urls(cls, value):
        return _parse_urls(value)


class ArticleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    introduction: str
    main: str
    main_audio_url: str
    url_to_main_illustration: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    published_at: Optional[datetime] = None
    author: str
    author_email: str
    urls: Optional[List[UrlItem]] = None
    validated: bool
    shipped: bool

    @computed_field
    @property
    def deleted(self) -> bool:
        return self.id.startswith(TOMBSTONE_PREFIX)


class SlugRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    created_at: datetime
    article_id: str
    validated: bool = False

    @field_validator("validated", mode="before")
    @classmethod
    def absent_is_false(cls, value):
        return bool(value)


class ToggleRequest(BaseModel):
    value: bool


class DeleteRequest(BaseModel):
    flag: bool = True


class MenuItemRead(BaseModel):
    permission: str
    label: str
    path: str
