"""
Centralized Rate Limiter for the provider clients.

Hey future me - this is the ONE place that decides whether a provider call may go out.
Every client (Spotify, Ticketmaster, Setlist.fm) asks here before each request.

ALGORITHM: Fixed Window
- Per key we keep (count, reset_time)
- No window yet, or now > reset_time → open a new window with count=1, allow
- count >= max_requests → deny (the caller waits and asks again)
- else count += 1, allow

No fairness and no queue: two coroutines that get denied race for the next window.
That's fine for a handful of sync jobs, it is NOT a general-purpose traffic shaper.

BACKENDS:
- InMemoryRateLimiter: default, per process. Good enough for a single worker.
- RedisRateLimiter: INCR + PEXPIRE, so several instances share one provider budget.
  Selected with SYNC_STATE_BACKEND=redis.

USAGE:
    limiter = get_rate_limiter(settings)
    budget = RateLimitBudget.per_window(200, 3600)  # Ticketmaster: 200/hour
    await wait_for_slot(limiter, "ticketmaster", budget, deny_delay=1.0)
    response = await client.get(url)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from setlistsync.domain.ports import IRateLimiter

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from setlistsync.config import Settings

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class RateLimitBudget:
    """How many requests a provider gets per window."""

    max_requests: int
    window_ms: int

    @classmethod
    def per_window(cls, max_requests: int, window_seconds: float) -> "RateLimitBudget":
        return cls(max_requests=max_requests, window_ms=int(window_seconds * 1000))


@dataclass
class _Window:
    count: int
    reset_time: float


@dataclass
class InMemoryRateLimiter(IRateLimiter):
    """Process-local fixed-window limiter.

    Attributes:
        clock: Millisecond clock, injectable so tests don't have to sleep
    """

    clock: Callable[[], float] = field(default=_monotonic_ms)
    _windows: dict[str, _Window] = field(default_factory=dict, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def check_limit(self, key: str, max_requests: int, window_ms: int) -> bool:
        async with self._lock:
            now = self.clock()
            window = self._windows.get(key)

            if window is None or now > window.reset_time:
                self._windows[key] = _Window(count=1, reset_time=now + window_ms)
                return True

            if window.count >= max_requests:
                logger.debug(
                    "RateLimiter[%s]: window exhausted (%d/%d), resets in %.0fms",
                    key,
                    window.count,
                    max_requests,
                    window.reset_time - now,
                )
                return False

            window.count += 1
            return True

    def reset(self, key: str | None = None) -> None:
        """Forget one window (or all of them)."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)


class RedisRateLimiter(IRateLimiter):
    """Fixed-window limiter shared through Redis.

    Hey future me - the first INCR of a window creates the key, so that's when we attach
    the expiry. If a crash ever leaves a key without TTL (pttl == -1) we re-arm it,
    otherwise that provider would be blocked forever.
    """

    def __init__(self, redis: "Redis", prefix: str = "setlistsync:ratelimit:") -> None:
        self._redis = redis
        self._prefix = prefix

    async def check_limit(self, key: str, max_requests: int, window_ms: int) -> bool:
        redis_key = f"{self._prefix}{key}"
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            count, ttl = await pipe.execute()

        if count == 1 or ttl == -1:
            await self._redis.pexpire(redis_key, window_ms)

        allowed = int(count) <= max_requests
        if not allowed:
            logger.debug(
                "RateLimiter[%s]: shared window exhausted (%s/%d)",
                key,
                count,
                max_requests,
            )
        return allowed

    async def close(self) -> None:
        await self._redis.aclose()


async def wait_for_slot(
    limiter: IRateLimiter,
    key: str,
    budget: RateLimitBudget,
    deny_delay: float = 1.0,
) -> None:
    """Block until the limiter admits one request for ``key``.

    After a deny we sleep a fixed ``deny_delay`` and ask again. No backoff, no queue.
    """
    while not await limiter.check_limit(key, budget.max_requests, budget.window_ms):
        logger.debug("RateLimiter[%s]: denied, retrying in %.1fs", key, deny_delay)
        await asyncio.sleep(deny_delay)


# Module-level limiter (singleton pattern)
# Hey future me - all clients share ONE limiter so the per-provider budget is global
# to the process. Tests call reset_rate_limiter() in teardown.
_rate_limiter: IRateLimiter | None = None


def get_rate_limiter(settings: "Settings") -> IRateLimiter:
    """Get the process-wide rate limiter for the configured backend."""
    global _rate_limiter
    if _rate_limiter is None:
        if settings.sync.state_backend == "redis":
            from redis.asyncio import Redis

            _rate_limiter = RedisRateLimiter(
                Redis.from_url(settings.sync.redis_url, decode_responses=True)
            )
            logger.info("Rate limiter backend: redis (%s)", settings.sync.redis_url)
        else:
            _rate_limiter = InMemoryRateLimiter()
            logger.info("Rate limiter backend: in-memory")
    return _rate_limiter


def reset_rate_limiter() -> None:
    """Drop the singleton (tests, shutdown)."""
    global _rate_limiter
    _rate_limiter = None


__all__ = [
    "RateLimitBudget",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "wait_for_slot",
    "get_rate_limiter",
    "reset_rate_limiter",
]
