# src/mx_space/schemas/post.py
"""Post-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mx_space.schemas.category import CategoryResponse
from mx_space.schemas.common import loaded_attributes


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1, description="Markdown content")
    slug: str | None = Field(None, max_length=255, description="Defaults to the generated id")
    category_id: str = Field(..., description="Category the post is filed under")
    summary: str | None = None
    hide: bool = False
    password: str | None = Field(None, max_length=255)
    allow_comment: bool = True
    tags: list[str] = Field(default_factory=list)
    copyright: bool = True


class PostUpdate(BaseModel):
    """Partial update; only fields that are set are written."""

    title: str | None = Field(None, min_length=1, max_length=255)
    text: str | None = Field(None, min_length=1)
    slug: str | None = Field(None, min_length=1, max_length=255)
    category_id: str | None = None
    summary: str | None = None
    hide: bool | None = None
    password: str | None = None
    allow_comment: bool | None = None
    tags: list[str] | None = None
    copyright: bool | None = None


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    title: str
    text: str
    slug: str
    summary: str | None = None
    category_id: str
    category: CategoryResponse | None = None
    tags: list[str] = []
    copyright: bool
    hide: bool
    allow_comment: bool
    comments_index: int
    read_count: int
    like_count: int
    created: datetime
    modified: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _extract_loaded(cls, data: object) -> object:
        return loaded_attributes(cls, data)
