"""Stores for sync progress snapshots.

Hey future me - progress is advisory. If the process dies mid-sync the in-memory
snapshot is gone and the client just sees 404 on the next poll. With
SYNC_STATE_BACKEND=redis the snapshot survives restarts and is visible to every
instance behind the load balancer, and it expires after progress_ttl_seconds.
"""

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from setlistsync.domain.ports import IProgressStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from setlistsync.config import Settings

logger = logging.getLogger(__name__)


class InMemoryProgressStore(IProgressStore):
    """Process-local dict of snapshots."""

    def __init__(self) -> None:
        self._states: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, artist_id: str) -> dict[str, Any] | None:
        async with self._lock:
            state = self._states.get(artist_id)
            return dict(state) if state is not None else None

    async def save(self, artist_id: str, state: dict[str, Any]) -> None:
        async with self._lock:
            self._states[artist_id] = dict(state)


class RedisProgressStore(IProgressStore):
    """Snapshots as JSON strings with a TTL."""

    def __init__(
        self,
        redis: "Redis",
        ttl_seconds: int = 3600,
        prefix: str = "setlistsync:progress:",
    ) -> None:
        self._redis = redis
        self._ttl = ttl_seconds
        self._prefix = prefix

    async def get(self, artist_id: str) -> dict[str, Any] | None:
        raw = await self._redis.get(f"{self._prefix}{artist_id}")
        if raw is None:
            return None
        value = json.loads(raw)
        return value if isinstance(value, dict) else None

    async def save(self, artist_id: str, state: dict[str, Any]) -> None:
        await self._redis.setex(
            f"{self._prefix}{artist_id}", self._ttl, json.dumps(state, default=str)
        )

    async def close(self) -> None:
        await self._redis.aclose()


_progress_store: IProgressStore | None = None


def get_progress_store(settings: "Settings") -> IProgressStore:
    """Get the process-wide progress store for the configured backend."""
    global _progress_store
    if _progress_store is None:
        if settings.sync.state_backend == "redis":
            from redis.asyncio import Redis

            _progress_store = RedisProgressStore(
                Redis.from_url(settings.sync.redis_url, decode_responses=True),
                ttl_seconds=settings.sync.progress_ttl_seconds,
            )
            logger.info("Progress store backend: redis")
        else:
            _progress_store = InMemoryProgressStore()
            logger.info("Progress store backend: in-memory")
    return _progress_store


def reset_progress_store() -> None:
    """Drop the singleton (tests, shutdown)."""
    global _progress_store
    _progress_store = None
