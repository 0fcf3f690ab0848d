# src/mx_space/models/content.py
"""SQLAlchemy models for published content: posts, notes and categories."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mx_space.db.ids import generate_id
from mx_space.db.session import Base
from mx_space.db.time import utcnow

CATEGORY_TYPE_CATEGORY = 0
CATEGORY_TYPE_TAG = 1


class ContentMixin:
    """Columns shared by every commentable content item.

    Identifiable, timestamped, hideable and optionally password protected.
    """

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    modified: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )
    hide: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Never rendered unless explicitly selected with "+password".
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    allow_comment: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Number of top-level comments ever accepted on this item.
    comments_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    read_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Category(Base):
    """Grouping for posts; ``type`` distinguishes categories from tag pages."""

    __tablename__ = "category"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    type: Mapped[int] = mapped_column(Integer, default=CATEGORY_TYPE_CATEGORY, nullable=False)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Post(ContentMixin, Base):
    """Long-form article filed under a category and addressed by slug."""

    __tablename__ = "post"
    __table_args__ = (UniqueConstraint("category_id", "slug", name="uq_post_category_slug"),)

    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("category.id"),
        nullable=False,
        index=True,
    )
    tags: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    copyright: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped[Category] = relationship(Category)


class Note(ContentMixin, Base):
    """Short diary-style entry addressed publicly by its sequential ``nid``."""

    __tablename__ = "note"

    nid: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    mood: Mapped[str | None] = mapped_column(String(64), nullable=True)
    weather: Mapped[str | None] = mapped_column(String(64), nullable=True)
