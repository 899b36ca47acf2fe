"""
Redis caching layer.

Usage:
    from core.cache import redis_cache, invalidate_dashboard

    await redis_cache.init()
    await redis_cache.set(dashboard_key(user_id), stats, ttl=60)
    await invalidate_dashboard(job_id)
"""

import json
import logging
from typing import Any, Optional
from datetime import datetime, date
from enum import Enum

from redis.asyncio import Redis, from_url
from core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    _instance = None
    _redis: Optional[Redis] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(RedisCache, cls).__new__(cls)
        return cls._instance

    async def init(self, url: Optional[str] = None):
        """Initialize Redis connection."""
        if not self._redis:
            self._redis = from_url(
                url or settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info("Redis cache initialized")

    async def close(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis cache closed")

    @property
    def is_ready(self) -> bool:
        return self._redis is not None

    @property
    def redis(self) -> Redis:
        if not self._redis:
            raise RuntimeError("Redis cache not initialized. Call init() first.")
        return self._redis

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        try:
            val = await self.redis.get(key)
            if val:
                return json.loads(val)
        except Exception as e:
            logger.error(f"Cache get error for {key}: {e}")
        return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache."""
        try:
            serialized = json.dumps(value, default=self._json_serializer)
            await self.redis.set(key, serialized, ex=ttl)
            return True
        except Exception as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        try:
            await self.redis.delete(key)
            return True
        except Exception as e:
            logger.error(f"Cache delete error for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern."""
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                await self.redis.delete(*keys)
            return len(keys)
        except Exception as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0

    @staticmethod
    def _json_serializer(obj):
        """JSON serializer for datetimes and enums."""
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        raise TypeError(f"Type {type(obj)} not serializable")


# Global instance
redis_cache = RedisCache()


def dashboard_key(user_id: str, job_id: Optional[int] = None) -> str:
    """Cache key for a dashboard projection (one job, or every job of a user)."""
    if job_id is not None:
        return f"dashboard:job:{job_id}"
    return f"dashboard:user:{user_id}"


async def invalidate_dashboard(*job_ids: Optional[int]) -> None:
    """
    Drop cached dashboard projections affected by a change to these jobs.

    User-wide projections cannot be mapped back from a job id, so all of them
    are dropped too. A no-op when the cache was never initialised.
    """
    if not redis_cache.is_ready:
        logger.debug("Dashboard invalidation skipped, cache not initialised")
        return

    for job_id in {job_id for job_id in job_ids if job_id is not None}:
        await redis_cache.delete(f"dashboard:job:{job_id}")
    await redis_cache.delete_pattern("dashboard:user:*")
