# src/mx_space/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import AuthCheck, LoginRequest, TokenResponse
from .category import CategoryCreate, CategoryResponse, CategoryUpdate
from .comment import CommentCounts, CommentCreate, CommentResponse, CommentStateUpdate, TextOnly
from .common import DeleteResponse, MessageResponse
from .note import NoteCreate, NoteDetail, NoteResponse, NoteSummary, NoteUpdate
from .post import PostCreate, PostResponse, PostUpdate

__all__ = [
    "AuthCheck", "LoginRequest", "TokenResponse",
    "CategoryCreate", "CategoryResponse", "CategoryUpdate",
    "CommentCounts", "CommentCreate", "CommentResponse", "CommentStateUpdate", "TextOnly",
    "DeleteResponse", "MessageResponse",
    "NoteCreate", "NoteDetail", "NoteResponse", "NoteSummary", "NoteUpdate",
    "PostCreate", "PostResponse", "PostUpdate",
]
