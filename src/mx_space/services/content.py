"""Visibility rules and per-visitor counters for posts and notes."""

from __future__ import annotations

import hmac
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import ColumnElement

from mx_space.core.errors import BadInputError, ForbiddenError
from mx_space.models.content import Note, Post
from mx_space.repositories.base import Repository
from mx_space.services.interactions import KIND_LIKE, KIND_READ, InteractionTracker

logger = logging.getLogger(__name__)

# The window for year Y ends at Jan 1 of Y + 1, which must still be a valid datetime.
MAX_YEAR = 9998


def visibility_criteria(model: Any, is_master: bool) -> list[ColumnElement[bool]]:
    """Guests only see content that is neither hidden nor password protected."""
    if is_master:
        return []
    return [model.hide.is_(False), model.password.is_(None)]


def unhidden_criteria(model: Any, is_master: bool) -> list[ColumnElement[bool]]:
    """Like :func:`visibility_criteria` but keeps password protected items."""
    if is_master:
        return []
    return [model.hide.is_(False)]


def year_criteria(model: Any, year: int | None) -> list[ColumnElement[bool]]:
    """Restrict ``model.created`` to the calendar year ``year`` (UTC)."""
    if not year:
        return []
    if not 1 <= year <= MAX_YEAR:
        raise BadInputError(f"Year must be between 1 and {MAX_YEAR}")
    start = datetime(year, 1, 1, tzinfo=UTC)
    end = datetime(year + 1, 1, 1, tzinfo=UTC)
    return [model.created >= start, model.created < end]


def check_password(item: Post | Note, password: str | None) -> bool:
    """Return True if ``item`` is unprotected or ``password`` unlocks it."""
    if not item.password:
        return True
    if password is None:
        return False
    return hmac.compare_digest(item.password.encode("utf-8"), password.encode("utf-8"))


def ensure_readable(item: Post | Note, password: str | None, *, is_master: bool) -> None:
    """Raise ``ForbiddenError`` when a guest cannot open ``item``."""
    if is_master:
        return
    if item.hide:
        raise ForbiddenError("This content is not public")
    if not check_password(item, password):
        raise ForbiddenError("A valid password is required to read this content")


class ContentService:
    """Read and like counters, counted once per IP per day."""

    def __init__(self, repository: Repository[Any], tracker: InteractionTracker) -> None:
        self.repository = repository
        self.tracker = tracker

    async def record_read(self, item_id: str, ip: str | None) -> bool:
        if not ip or not await self.tracker.mark(KIND_READ, item_id, ip):
            return False
        result = await self.repository.increment({"id": item_id}, read_count=1)
        return bool(result.modified_count)

    async def record_like(self, item_id: str, ip: str | None) -> bool:
        """Count a like; False when this IP already liked the item today."""
        if not ip or not await self.tracker.mark(KIND_LIKE, item_id, ip):
            return False
        result = await self.repository.increment({"id": item_id}, like_count=1)
        if result.modified_count:
            logger.debug("Like recorded for %s from %s", item_id, ip)
        return bool(result.modified_count)
