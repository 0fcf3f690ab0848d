"""Category-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mx_space.models.content import CATEGORY_TYPE_CATEGORY
from mx_space.schemas.common import loaded_attributes


class CategoryCreate(BaseModel):
    """Schema for creating a category; ``slug`` defaults to ``name``."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    type: int = Field(CATEGORY_TYPE_CATEGORY, ge=0, le=1, description="0 = category, 1 = tag")


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, min_length=1, max_length=255)
    type: int | None = Field(None, ge=0, le=1)


class CategoryResponse(BaseModel):
    id: str
    name: str
    slug: str
    type: int
    created: datetime

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _extract_loaded(cls, data: object) -> object:
        return loaded_attributes(cls, data)
