# src/mx_space/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    aggregate_router,
    analytics_router,
    auth_router,
    categories_router,
    comments_router,
    gateway_router,
    notes_router,
    posts_router,
    uploads_router,
)

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
