"""Tests for the progress snapshot stores."""

import json
from unittest.mock import AsyncMock, MagicMock

from setlistsync.infrastructure.progress_store import (
    InMemoryProgressStore,
    RedisProgressStore,
)


class TestInMemoryProgressStore:
    async def test_unknown_artist_is_none(self) -> None:
        assert await InMemoryProgressStore().get("nope") is None

    async def test_save_replaces_snapshot(self) -> None:
        store = InMemoryProgressStore()
        await store.save("a1", {"status": "in_progress", "completed_steps": 1})
        await store.save("a1", {"status": "completed", "completed_steps": 5})

        assert await store.get("a1") == {"status": "completed", "completed_steps": 5}

    async def test_returned_snapshot_is_a_copy(self) -> None:
        store = InMemoryProgressStore()
        await store.save("a1", {"status": "in_progress"})

        snapshot = await store.get("a1")
        assert snapshot is not None
        snapshot["status"] = "tampered"

        assert await store.get("a1") == {"status": "in_progress"}


class TestRedisProgressStore:
    async def test_save_writes_json_with_ttl(self) -> None:
        redis = MagicMock()
        redis.setex = AsyncMock()
        store = RedisProgressStore(redis, ttl_seconds=120)

        await store.save("a1", {"status": "in_progress", "completed_steps": 2})

        key, ttl, raw = redis.setex.await_args.args
        assert key == "setlistsync:progress:a1"
        assert ttl == 120
        assert json.loads(raw) == {"status": "in_progress", "completed_steps": 2}

    async def test_get_decodes_json(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value='{"status": "completed"}')

        assert await RedisProgressStore(redis).get("a1") == {"status": "completed"}

    async def test_get_missing_key_is_none(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=None)

        assert await RedisProgressStore(redis).get("a1") is None
