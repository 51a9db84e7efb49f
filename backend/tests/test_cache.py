"""
Response cache tests.
"""

import json

from stocksight.services.cache import ResponseCache, TTLCache


class FailingRedis:
    """Redis stand-in whose every call fails."""

    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")

    async def delete(self, key):
        raise ConnectionError("redis down")


class DictRedis:
    """Redis stand-in backed by a dict; records expiries."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex

    async def delete(self, key):
        self.store.pop(key, None)


class TestTTLCache:
    def test_expires_after_ttl(self, fake_clock):
        cache = TTLCache(ttl_seconds=60, clock=fake_clock)
        cache.set("k", {"v": 1})

        fake_clock.advance(59)
        assert cache.get("k") == {"v": 1}

        fake_clock.advance(1)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self, fake_clock):
        cache = TTLCache(ttl_seconds=60, clock=fake_clock)
        cache.set("short", 1, ttl=5)
        cache.set("long", 2)

        fake_clock.advance(10)
        assert cache.get("short") is None
        assert cache.get("long") == 2

    def test_delete_and_clear(self, fake_clock):
        cache = TTLCache(clock=fake_clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.delete("a")
        assert cache.get("a") is None
        assert len(cache) == 1

        cache.clear()
        assert len(cache) == 0

    def test_set_sweeps_expired_entries(self, fake_clock):
        cache = TTLCache(ttl_seconds=60, clock=fake_clock)
        cache.set("a", 1)

        fake_clock.advance(61)
        cache.set("b", 2)

        assert cache.size == 1
        assert cache.get("b") == 2


class TestResponseCache:
    async def test_memory_backend(self, fake_clock):
        cache = ResponseCache(ttl_seconds=30, memory=TTLCache(30, clock=fake_clock))
        await cache.set("prediction:AAPL:ml:60", {"ticker": "AAPL"})
        assert await cache.get("prediction:AAPL:ml:60") == {"ticker": "AAPL"}

        fake_clock.advance(31)
        assert await cache.get("prediction:AAPL:ml:60") is None

    async def test_redis_backend_stores_json_with_expiry(self):
        redis_client = DictRedis()
        cache = ResponseCache(ttl_seconds=60, redis_client=redis_client)

        await cache.set("quote:AAPL", {"price": 187.5})
        assert json.loads(redis_client.store["quote:AAPL"]) == {"price": 187.5}
        assert redis_client.expiries["quote:AAPL"] == 60
        assert await cache.get("quote:AAPL") == {"price": 187.5}

        await cache.delete("quote:AAPL")
        assert await cache.get("quote:AAPL") is None

    async def test_redis_failure_falls_back_to_memory(self, fake_clock):
        cache = ResponseCache(
            ttl_seconds=60,
            redis_client=FailingRedis(),
            memory=TTLCache(60, clock=fake_clock),
        )
        await cache.set("k", {"v": 1})
        assert await cache.get("k") == {"v": 1}
