"""Page access analytics."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mx_space.db.time import start_of_day, start_of_week, utcnow
from mx_space.models.analytics import AccessRecord
from mx_space.repositories.analytics_repo import AccessRecordRepository, created_between
from mx_space.repositories.base import DeleteResult, PageRequest, PageResult
from mx_space.services.interactions import KIND_ACCESS, TODAY, InteractionTracker
from mx_space.services.pager import PageWindow

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tracker: InteractionTracker,
    ) -> None:
        self.records = AccessRecordRepository(session_factory)
        self.tracker = tracker

    async def record(self, path: str, ip: str | None, ua: str | None) -> AccessRecord:
        """Store one page view and remember the visitor IP for today."""
        record = await self.records.create_new({"path": path, "ip": ip, "ua": ua})
        if ip:
            await self.tracker.mark(KIND_ACCESS, TODAY, ip)
        return record

    async def list_range(
        self,
        start: datetime | None,
        end: datetime | None,
        window: PageWindow,
    ) -> PageResult[dict[str, Any]]:
        return await self.records.find_with_paginator(
            None,
            *created_between(start, end),
            options=PageRequest.from_window(window, sort={"created": -1}),
        )

    async def list_today(self, window: PageWindow) -> PageResult[dict[str, Any]]:
        now = utcnow()
        return await self.list_range(start_of_day(now), now, window)

    async def list_week(self, window: PageWindow) -> PageResult[dict[str, Any]]:
        now = utcnow()
        return await self.list_range(start_of_week(now), now, window)

    async def total(self) -> int:
        return await self.records.count_documents()

    async def today_ips(self) -> list[str]:
        return sorted(await self.tracker.members(KIND_ACCESS, TODAY))

    async def clean_range(self, start: datetime | None, end: datetime | None) -> DeleteResult:
        result = await self.records.delete_many(None, *created_between(start, end))
        logger.info("Removed %d access records", result.deleted_count)
        return result

    async def clean_older_than(self, days: int) -> DeleteResult:
        """Delete access records created more than ``days`` days ago."""
        result = await self.records.delete_older_than(utcnow() - timedelta(days=days))
        logger.info("Removed %d access records older than %d days", result.deleted_count, days)
        return result
