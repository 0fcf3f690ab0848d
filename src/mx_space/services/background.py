"""Detached execution of best-effort side effects.

Mail, live broadcasts, spam classification and access recording must never
hold up or fail the request that triggered them. ``BackgroundTaskRunner``
schedules them on the running loop, keeps a strong reference until they
finish and logs whatever they raise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Fire-and-forget task scheduler with failure logging."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        """Number of spawned tasks that have not finished yet."""
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> None:
        """Schedule ``coro`` without awaiting it.

        Callers get no handle back; failures are logged and dropped.
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Background task %s cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed: %s",
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


_runner: BackgroundTaskRunner | None = None


def get_background_runner() -> BackgroundTaskRunner:
    """Return the process-wide runner used by the API layer."""
    global _runner
    if _runner is None:
        _runner = BackgroundTaskRunner()
    return _runner
