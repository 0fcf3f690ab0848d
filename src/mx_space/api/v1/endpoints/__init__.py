# src/mx_space/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .aggregate import router as aggregate_router
from .analytics import router as analytics_router
from .auth import router as auth_router
from .categories import router as categories_router
from .comments import router as comments_router
from .gateway import router as gateway_router
from .notes import router as notes_router
from .posts import router as posts_router
from .uploads import router as uploads_router

__all__ = [
    "aggregate_router",
    "analytics_router",
    "auth_router",
    "categories_router",
    "comments_router",
    "gateway_router",
    "notes_router",
    "posts_router",
    "uploads_router",
]
