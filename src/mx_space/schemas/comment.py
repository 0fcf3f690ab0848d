# src/mx_space/schemas/comment.py
"""Comment-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mx_space.models.comment import CommentState
from mx_space.schemas.common import loaded_attributes


class CommentCreate(BaseModel):
    """Schema for a guest comment or reply."""

    author: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1, max_length=5000)
    mail: str | None = Field(None, max_length=255)
    url: str | None = Field(None, max_length=512)


class TextOnly(BaseModel):
    """Body of the master's comment endpoints; identity comes from settings."""

    text: str = Field(..., min_length=1, max_length=5000)


class CommentStateUpdate(BaseModel):
    state: CommentState


class CommentResponse(BaseModel):
    """Schema for a comment with whatever relatives were loaded."""

    id: str
    ref_type: str
    ref_id: str
    parent_id: str | None = None
    position: int | None = None
    comments_index: int
    key: str
    state: int
    author: str
    mail: str | None = None
    url: str | None = None
    text: str
    created: datetime
    parent: CommentResponse | None = None
    children: list[CommentResponse] = []

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _extract_loaded(cls, data: object) -> object:
        return loaded_attributes(cls, data)


class CommentCounts(BaseModel):
    passed: int
    gomi: int
    need_checked: int
