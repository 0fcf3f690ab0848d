"""Scheduled housekeeping.

``MaintenanceWorker`` runs a fixed set of jobs every
``MAINTENANCE_INTERVAL_SECONDS``. A failing job is logged and skipped until
the next round; the loop itself keeps going.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mx_space.core.settings import settings
from mx_space.services.analytics import AnalyticsService
from mx_space.services.interactions import InteractionTracker

logger = logging.getLogger(__name__)


class MaintenanceWorker:
    """Periodically prunes analytics, resets daily counters and clears temp files."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tracker: InteractionTracker,
        *,
        interval: float | None = None,
        retention_days: int | None = None,
        temp_dir: str | Path | None = None,
    ) -> None:
        self.analytics = AnalyticsService(session_factory, tracker)
        self.tracker = tracker
        self.interval = max(0.1, float(interval if interval is not None else settings.maintenance_interval_seconds))
        self.retention_days = retention_days if retention_days is not None else settings.access_record_retention_days
        self.temp_dir = Path(temp_dir if temp_dir is not None else settings.temp_dir)
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background maintenance loop."""
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="maintenance-worker")
        logger.info("Maintenance worker started (interval %.0fs)", self.interval)

    async def stop(self) -> None:
        """Stop the background maintenance loop."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Maintenance worker stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                await self.run_once()

    async def run_once(self) -> dict[str, bool]:
        """Run every job once; returns ``{job name: succeeded}``."""
        jobs: dict[str, Callable[[], Awaitable[object]]] = {
            "clean_access_records": self.clean_access_records,
            "reset_interactions": self.reset_interactions,
            "clean_temp_directory": self.clean_temp_directory,
        }
        outcome: dict[str, bool] = {}
        for name, job in jobs.items():
            try:
                await job()
            except (SQLAlchemyError, RedisError, OSError) as e:
                logger.error("Maintenance job %s failed: %s", name, e, exc_info=True)
                outcome[name] = False
            else:
                outcome[name] = True
        return outcome

    async def clean_access_records(self) -> int:
        result = await self.analytics.clean_older_than(self.retention_days)
        return result.deleted_count

    async def reset_interactions(self) -> int:
        return await self.tracker.reset()

    async def clean_temp_directory(self) -> None:
        """Remove and recreate the temp directory."""
        await asyncio.to_thread(self._recreate_temp_dir)
        logger.info("Temp directory %s cleaned", self.temp_dir)

    def _recreate_temp_dir(self) -> None:
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)
