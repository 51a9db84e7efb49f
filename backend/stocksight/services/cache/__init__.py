"""
Cache module for StockSight.

Short-TTL response cache, Redis-backed when available.
"""

from stocksight.services.cache.redis_client import (
    TTLCache,
    ResponseCache,
    get_response_cache,
    init_redis,
    close_redis,
)

__all__ = [
    "TTLCache",
    "ResponseCache",
    "get_response_cache",
    "init_redis",
    "close_redis",
]
