"""
Response cache for prediction lookups.

Short-TTL cache that avoids repeat calls to slow upstream providers
within the TTL window. Backed by Redis when it is reachable, otherwise
by an in-process TTLCache. Not shared-consistent: a latency optimization
only.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import redis.asyncio as redis

from stocksight.core.config import settings

logger = logging.getLogger(__name__)

# Global Redis connection pool
_redis_pool: Optional[redis.Redis] = None


async def init_redis() -> Optional[redis.Redis]:
    """
    Initialize Redis connection pool.
    Called on application startup.
    """
    global _redis_pool

    if _redis_pool is not None:
        return _redis_pool

    try:
        _redis_pool = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        # Test connection
        await _redis_pool.ping()
        logger.info(f"Redis connected: {settings.redis_url}")
        return _redis_pool
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory cache.")
        _redis_pool = None
        return None


async def close_redis() -> None:
    """Close Redis connection pool."""
    global _redis_pool
    if _redis_pool:
        await _redis_pool.close()
        _redis_pool = None
        logger.info("Redis connection closed")


class TTLCache:
    """
    In-memory key/value store with per-entry expiry.

    Args:
        ttl_seconds: Default lifetime of an entry
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        now = self._clock()
        self._evict_expired(now)
        lifetime = self.ttl_seconds if ttl is None else ttl
        self._entries[key] = (now + lifetime, value)

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)

    @property
    def size(self) -> int:
        """Stored entries, expired or not."""
        return len(self._entries)


class ResponseCache:
    """
    JSON response cache.

    Keys:
    - prediction:{ticker}:{ml|ta}:{lookback} -> PredictionResponse JSON
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        redis_client: Optional[redis.Redis] = None,
        memory: Optional[TTLCache] = None,
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.prediction_cache_ttl
        self._redis = redis_client
        self._memory = memory if memory is not None else TTLCache(ttl_seconds=self.ttl_seconds)

    @property
    def redis(self) -> Optional[redis.Redis]:
        return self._redis

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        if self.redis is not None:
            try:
                value = await self.redis.get(key)
                return json.loads(value) if value else None
            except Exception as e:
                logger.debug(f"Redis get failed for {key}: {e}")

        return self._memory.get(key)

    async def set(self, key: str, value: Dict[str, Any], ttl: Optional[float] = None) -> None:
        lifetime = self.ttl_seconds if ttl is None else ttl

        if self.redis is not None:
            try:
                await self.redis.set(key, json.dumps(value), ex=max(1, int(lifetime)))
                return
            except Exception as e:
                logger.debug(f"Redis set failed for {key}: {e}")

        self._memory.set(key, value, ttl=lifetime)

    async def delete(self, key: str) -> None:
        if self.redis is not None:
            try:
                await self.redis.delete(key)
            except Exception as e:
                logger.debug(f"Redis delete failed for {key}: {e}")

        self._memory.delete(key)


# Singleton instance
_response_cache: Optional[ResponseCache] = None


def get_response_cache() -> ResponseCache:
    """Get the response cache singleton (Redis-backed when connected)."""
    global _response_cache
    if _response_cache is None:
        _response_cache = ResponseCache(redis_client=_redis_pool)
    return _response_cache
