# src/mx_space/models/comment.py
"""Models for threaded comments attached to posts and notes."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum, StrEnum

from sqlalchemy import DateTime, Integer, SmallInteger, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mx_space.db.ids import generate_id
from mx_space.db.session import Base
from mx_space.db.time import utcnow


class CommentState(IntEnum):
    """Moderation state; moderators may move a comment between any two states."""

    UNREAD = 0
    READ = 1
    JUNK = 2


class CommentRefType(StrEnum):
    """Kind of content item a comment is attached to."""

    POST = "Post"
    NOTE = "Note"


class Comment(Base):
    """A comment or a reply inside a thread.

    ``key`` is the thread path: a root comment's key is its own id and a reply's
    key is ``{parent.key}#{n}`` where ``n`` is the parent's ``comments_index``
    at the time the reply was accepted.
    """

    __tablename__ = "comment"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=generate_id)
    ref_type: Mapped[str] = mapped_column(String(16), nullable=False)
    ref_id: Mapped[str] = mapped_column(String(24), nullable=False, index=True)
    # Weak back-reference: no FK constraint so a parent can be removed on its own.
    parent_id: Mapped[str | None] = mapped_column(String(24), nullable=True, index=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    comments_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    state: Mapped[int] = mapped_column(SmallInteger, default=CommentState.UNREAD, nullable=False)

    author: Mapped[str] = mapped_column(String(255), nullable=False)
    mail: Mapped[str | None] = mapped_column(String(255), nullable=True)
    url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    parent: Mapped[Comment | None] = relationship(
        "Comment",
        primaryjoin="foreign(Comment.parent_id) == remote(Comment.id)",
        viewonly=True,
    )
    children: Mapped[list[Comment]] = relationship(
        "Comment",
        primaryjoin="remote(foreign(Comment.parent_id)) == Comment.id",
        order_by="Comment.position",
        viewonly=True,
    )
