"""Note-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mx_space.schemas.common import loaded_attributes


class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1)
    hide: bool = False
    password: str | None = Field(None, max_length=255)
    allow_comment: bool = True
    mood: str | None = Field(None, max_length=64)
    weather: str | None = Field(None, max_length=64)


class NoteUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    text: str | None = Field(None, min_length=1)
    hide: bool | None = None
    password: str | None = None
    allow_comment: bool | None = None
    mood: str | None = None
    weather: str | None = None


class NoteResponse(BaseModel):
    id: str
    nid: int
    title: str
    text: str
    mood: str | None = None
    weather: str | None = None
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


class NoteSummary(BaseModel):
    """Neighbouring note without its body."""

    id: str
    nid: int
    title: str
    created: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteDetail(BaseModel):
    data: NoteResponse
    prev: NoteSummary | None = None
    next: NoteSummary | None = None
