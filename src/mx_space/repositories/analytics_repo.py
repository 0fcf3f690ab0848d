"""Data access helpers for access records."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import ColumnElement

from mx_space.models.analytics import AccessRecord
from mx_space.repositories.base import DeleteResult, Repository

__all__ = ["AccessRecordRepository", "created_between"]


def created_between(start: datetime | None, end: datetime | None) -> list[ColumnElement[bool]]:
    """Return criteria bounding ``AccessRecord.created`` to ``[start, end]``."""
    criteria: list[ColumnElement[bool]] = []
    if start is not None:
        criteria.append(AccessRecord.created >= start)
    if end is not None:
        criteria.append(AccessRecord.created <= end)
    return criteria


class AccessRecordRepository(Repository[AccessRecord]):
    model = AccessRecord

    async def delete_older_than(self, cutoff: datetime) -> DeleteResult:
        return await self.delete_many(None, AccessRecord.created < cutoff)
