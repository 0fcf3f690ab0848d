"""Per-day de-duplication of reads, likes and visitor IPs.

Each ``(kind, ref_id)`` pair owns a set of client IPs seen since the last
daily reset. Redis (``redis.asyncio``) stores the sets when ``REDIS_URL`` is
configured; otherwise they live in process memory.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Final

from redis.asyncio import Redis
from redis.exceptions import RedisError

from mx_space.core.settings import settings

logger = logging.getLogger(__name__)

KEY_PREFIX: Final[str] = "mx"
KIND_READ: Final[str] = "read"
KIND_LIKE: Final[str] = "like"
KIND_ACCESS: Final[str] = "access"
TODAY: Final[str] = "today"


class InteractionTracker:
    """Remembers which IPs already interacted with an item today."""

    def __init__(self, redis_client: Redis | None = None) -> None:
        self._redis = redis_client
        self._seen: defaultdict[str, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    @property
    def uses_redis(self) -> bool:
        return self._redis is not None

    @staticmethod
    def key(kind: str, ref_id: str) -> str:
        return f"{KEY_PREFIX}:{kind}:{ref_id}"

    def _drop_redis(self, exc: RedisError) -> None:
        logger.warning("Redis unavailable, tracking interactions in process: %s", exc)
        self._redis = None

    async def mark(self, kind: str, ref_id: str, ip: str) -> bool:
        """Record ``ip`` for ``(kind, ref_id)``; True if it was not seen today."""
        key = self.key(kind, ref_id)
        if self._redis is not None:
            try:
                return bool(await self._redis.sadd(key, ip))
            except RedisError as exc:
                self._drop_redis(exc)

        async with self._lock:
            if ip in self._seen[key]:
                return False
            self._seen[key].add(ip)
            return True

    async def members(self, kind: str, ref_id: str) -> set[str]:
        key = self.key(kind, ref_id)
        if self._redis is not None:
            try:
                return {str(member) for member in await self._redis.smembers(key)}
            except RedisError as exc:
                self._drop_redis(exc)

        async with self._lock:
            return set(self._seen.get(key, ()))

    async def reset(self) -> int:
        """Forget every recorded interaction; returns the number of sets removed."""
        removed = 0
        if self._redis is not None:
            try:
                keys = [key async for key in self._redis.scan_iter(match=f"{KEY_PREFIX}:*")]
                if keys:
                    removed = int(await self._redis.delete(*keys))
            except RedisError as exc:
                self._drop_redis(exc)

        async with self._lock:
            removed += len(self._seen)
            self._seen.clear()
        logger.info("Reset %d interaction sets", removed)
        return removed


_tracker: InteractionTracker | None = None


def get_interaction_tracker() -> InteractionTracker:
    """Return the process-wide tracker, backed by Redis when configured."""
    global _tracker
    if _tracker is None:
        client = Redis.from_url(settings.redis_url, decode_responses=True) if settings.redis_url else None
        _tracker = InteractionTracker(client)
    return _tracker
