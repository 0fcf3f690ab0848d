"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect


def loaded_attributes(model: type[BaseModel], data: object) -> object:
    """Extract schema fields from an ORM object, skipping unloaded relationships.

    Detached instances cannot lazy load, so anything not eagerly loaded is
    left to the field default.
    """
    if isinstance(data, dict) or not hasattr(data, "__table__"):
        return data
    state = sa_inspect(data, raiseerr=False)
    unloaded = state.unloaded if state is not None else set()
    extracted: dict[str, Any] = {}
    for field_name in model.model_fields:
        if field_name in unloaded or not hasattr(data, field_name):
            continue
        extracted[field_name] = getattr(data, field_name)
    return extracted


class DeleteResponse(BaseModel):
    deleted_count: int


class MessageResponse(BaseModel):
    message: str
