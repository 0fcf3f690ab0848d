# src/mx_space/models/__init__.py
"""SQLAlchemy models for the mx-space application."""

from .analytics import AccessRecord
from .comment import Comment, CommentRefType, CommentState
from .content import Category, Note, Post

__all__ = [
    "AccessRecord",
    "Category", "Note", "Post",
    "Comment", "CommentRefType", "CommentState",
]
