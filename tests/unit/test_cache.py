"""Unit tests for the Redis-backed JSON cache helpers."""

import pytest
from libs.common import cache
from libs.common import redis as redis_module
from libs.common.redis import RedisUnavailableError


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the cache uses."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def scan_iter(self, match):
        prefix = match.rstrip("*")
        for key in list(self.store):
            if key.startswith(prefix):
                yield key


@pytest.fixture
def fake_redis(monkeypatch):
    redis = FakeRedis()

    async def _get_redis():
        return redis

    monkeypatch.setattr(cache, "cache_enabled", lambda: True)
    monkeypatch.setattr(cache, "get_redis", _get_redis)
    return redis


@pytest.mark.unit
def test_make_key_joins_parts():
    assert cache.make_key("settlement-summary", 42, "x") == "settlement-summary:42:x"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_cache_disabled_without_redis_url():
    assert cache.cache_enabled() is False
    assert await cache.cache_get("anything") is None
    assert await cache.cache_set("anything", {"a": 1}) is False
    assert await cache.cache_delete_prefix("any") == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_set_then_get_round_trips_json(fake_redis):
    assert await cache.cache_set("k", {"total": 10.5}, ttl=30) is True
    assert fake_redis.expiry["k"] == 30
    assert await cache.cache_get("k") == {"total": 10.5}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_undecodable_entry_is_a_miss(fake_redis):
    fake_redis.store["broken"] = "{not json"
    assert await cache.cache_get("broken") is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_prefix_only_removes_matching_keys(fake_redis):
    await cache.cache_set("settlement-summary:a:1", 1)
    await cache.cache_set("settlement-summary:a:2", 2)
    await cache.cache_set("settlement-summary:b:1", 3)

    removed = await cache.cache_delete_prefix("settlement-summary:a")

    assert removed == 2
    assert list(fake_redis.store) == ["settlement-summary:b:1"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_redis_errors_fail_open(monkeypatch):
    async def _broken():
        raise ConnectionError("redis down")

    async def _unconfigured():
        raise RedisUnavailableError("REDIS_URL is not configured")

    monkeypatch.setattr(cache, "cache_enabled", lambda: True)

    monkeypatch.setattr(cache, "get_redis", _broken)
    assert await cache.cache_get("k") is None
    assert await cache.cache_set("k", 1) is False

    monkeypatch.setattr(cache, "get_redis", _unconfigured)
    assert await cache.cache_delete("k") is False
    assert await cache.cache_delete_prefix("k") == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_ping_redis_reports_availability(monkeypatch):
    class _Answering:
        async def ping(self):
            return True

    class _Refusing:
        async def ping(self):
            raise ConnectionError("redis down")

    assert await redis_module.ping_redis() is False

    for client, expected in ((_Answering(), True), (_Refusing(), False)):

        async def _get_redis(client=client):
            return client

        monkeypatch.setattr(redis_module, "get_redis", _get_redis)
        assert await redis_module.ping_redis() is expected
