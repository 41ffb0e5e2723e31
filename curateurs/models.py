import uuid

from sqlalchemy import (
    Column, String, Boolean, ForeignKey, Text, DateTime, func, Index, JSON
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .database import Base
from .permissions import TOMBSTONE_PREFIX, UserRole, default_permissions


# JSONB on PostgreSQL, plain JSON elsewhere (sqlite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------
# USER MODEL
# ---------------------------
class User(Base):
    __tablename__ = "user"

    id = Column(String, primary_key=True, default=_new_id)
    name = Column(String, nullable=False, default="")
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    # fastapi-users reads ``is_verified``
    is_verified = Column("email_verified", Boolean, default=False, nullable=False)
    role = Column(
        SAEnum(UserRole, name="roles", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.contributor,
        nullable=False,
    )
    permissions = Column(JSONType, default=default_permissions, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


# ---------------------------
# ARTICLES
# ---------------------------
class Article(Base):
    __tablename__ = "articles"

    id = Column(String, primary_key=True, default=_new_id)
    slug = Column(String, nullable=False)
    title = Column(String, nullable=False)
    introduction = Column(Text, nullable=False, default="")
    main = Column(Text, nullable=False, default="")
    main_audio_url = Column(String, nullable=False, default="")
    url_to_main_illustration = Column(String, nullable=False, default="")
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    updated_by = Column(String, nullable=True)
    author = Column(String, nullable=False, default="")
    author_email = Column(String, nullable=False, default="")
    urls = Column(JSONType, nullable=True)  # ordered [{type, url, credits?}]
    validated = Column(Boolean, nullable=False, default=False)
    shipped = Column(Boolean, nullable=False, default=False)

    slugs = relationship("Slug", back_populates="article", passive_deletes=True, passive_updates=True)

    @property
    def is_deleted(self) -> bool:
        return (self.id or "").startswith(TOMBSTONE_PREFIX)

    def __repr__(self):
        return f"<Article {self.id} {self.slug!r}>"


class Slug(Base):
    __tablename__ = "slugs"

    id = Column(String, primary_key=True, default=_new_id)
    slug = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    # tombstoning rewrites articles.id, so the FK follows on update
    article_id = Column(
        String,
        ForeignKey("articles.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    validated = Column(Boolean, default=False, nullable=True)

    article = relationship("Article", back_populates="slugs")

    __table_args__ = (Index("slugs_article_id_idx", "article_id"),)

    def __repr__(self):
        return f"<Slug {self.slug}>"
