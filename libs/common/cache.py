"""JSON cache on top of Redis with graceful degradation.

Every function fails open: when Redis is unconfigured, disabled or erroring,
reads behave as a miss and writes are skipped, so callers always recompute.

Usage:
    from libs.common.cache import cache_get, cache_set, cache_delete_prefix

    cached = await cache_get(key)
    if cached is None:
        cached = await compute()
        await cache_set(key, cached, ttl=60)
"""
import json
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.redis import RedisUnavailableError, get_redis

logger = get_logger(__name__)


def cache_enabled() -> bool:
    settings = get_settings()
    return settings.CACHE_ENABLED and bool(settings.REDIS_URL)


def make_key(*parts: Any) -> str:
    """Join key parts with ``:`` (``make_key("summary", 1)`` → ``"summary:1"``)."""
    return ":".join(str(p) for p in parts)


async def cache_get(key: str) -> Optional[Any]:
    """
    Return the decoded value stored under ``key``, or None on miss.
    """
    if not cache_enabled():
        return None
    try:
        redis = await get_redis()
        raw = await redis.get(key)
    except RedisUnavailableError:
        return None
    except Exception as e:
        logger.warning("Cache get failed for %s: %s", key, e)
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Discarding undecodable cache entry %s", key)
        return None


async def cache_set(key: str, value: Any, ttl: Optional[int] = None) -> bool:
    """
    Store ``value`` as JSON under ``key`` with a TTL in seconds.

    Returns:
        True if stored, False if caching is unavailable
    """
    if not cache_enabled():
        return False
    ttl = ttl or get_settings().CACHE_DEFAULT_TTL
    try:
        redis = await get_redis()
        await redis.set(key, json.dumps(value, default=str), ex=ttl)
        return True
    except RedisUnavailableError:
        return False
    except Exception as e:
        logger.warning("Cache set failed for %s: %s", key, e)
        return False


async def cache_delete(key: str) -> bool:
    if not cache_enabled():
        return False
    try:
        redis = await get_redis()
        await redis.delete(key)
        return True
    except RedisUnavailableError:
        return False
    except Exception as e:
        logger.warning("Cache delete failed for %s: %s", key, e)
        return False


async def cache_delete_prefix(prefix: str) -> int:
    """
    Delete every key starting with ``prefix``.

    Returns:
        Number of keys removed (0 if caching is unavailable)
    """
    if not cache_enabled():
        return 0
    removed = 0
    try:
        redis = await get_redis()
        async for key in redis.scan_iter(match=f"{prefix}*"):
            removed += await redis.delete(key)
    except RedisUnavailableError:
        return 0
    except Exception as e:
        logger.warning("Cache prefix delete failed for %s: %s", prefix, e)
    return removed
