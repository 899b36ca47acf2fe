"""
Tests for the Redis cache wrapper and dashboard invalidation.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.cache import RedisCache, dashboard_key, invalidate_dashboard, redis_cache
from database.models.jobs import JobStatus


@pytest.fixture
def fake_redis(monkeypatch):
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.delete = AsyncMock()
    monkeypatch.setattr(redis_cache, "_redis", client)
    return client


def test_singleton():
    assert RedisCache() is redis_cache


@pytest.mark.parametrize("user_id,job_id,expected", [
    ("user-1", None, "dashboard:user:user-1"),
    ("user-1", 9, "dashboard:job:9"),
])
def test_dashboard_key(user_id, job_id, expected):
    assert dashboard_key(user_id, job_id) == expected


class TestRedisCache:

    def test_not_ready_without_init(self, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", None)
        assert redis_cache.is_ready is False
        with pytest.raises(RuntimeError):
            redis_cache.redis

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, fake_redis):
        fake_redis.get.return_value = json.dumps({"total": 4})
        assert await redis_cache.get("k") == {"total": 4}

    @pytest.mark.asyncio
    async def test_get_swallows_backend_errors(self, fake_redis):
        fake_redis.get.side_effect = ConnectionError("down")
        assert await redis_cache.get("k") is None

    @pytest.mark.asyncio
    async def test_set_serializes_datetimes_and_enums(self, fake_redis):
        value = {"at": datetime(2024, 1, 1, tzinfo=timezone.utc), "status": JobStatus.ACTIVE}

        assert await redis_cache.set("k", value, ttl=60) is True

        args, kwargs = fake_redis.set.call_args
        assert json.loads(args[1]) == {"at": "2024-01-01T00:00:00+00:00", "status": "active"}
        assert kwargs == {"ex": 60}


class TestInvalidateDashboard:

    @pytest.mark.asyncio
    async def test_noop_without_cache(self, monkeypatch):
        monkeypatch.setattr(redis_cache, "_redis", None)
        # Must not raise
        await invalidate_dashboard(1, 2)

    @pytest.mark.asyncio
    async def test_drops_job_and_user_projections(self, fake_redis, monkeypatch):
        delete = AsyncMock(return_value=True)
        delete_pattern = AsyncMock(return_value=2)
        monkeypatch.setattr(redis_cache, "delete", delete)
        monkeypatch.setattr(redis_cache, "delete_pattern", delete_pattern)

        await invalidate_dashboard(3, None, 3)

        delete.assert_awaited_once_with("dashboard:job:3")
        delete_pattern.assert_awaited_once_with("dashboard:user:*")
