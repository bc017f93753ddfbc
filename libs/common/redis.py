"""Shared async Redis connection.

Redis is optional: ``get_redis`` raises ``RedisUnavailableError`` when no
``REDIS_URL`` is configured so callers can fail open.
"""

from typing import Optional

from redis.asyncio import Redis

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

_redis: Optional[Redis] = None


class RedisUnavailableError(RuntimeError):
    """Raised when Redis is not configured."""


async def get_redis() -> Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _redis
    if _redis is None:
        settings = get_settings()
        if not settings.REDIS_URL:
            raise RedisUnavailableError("REDIS_URL is not configured")
        _redis = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis


async def ping_redis() -> bool:
    """Return True when Redis answers a PING."""
    try:
        redis = await get_redis()
    except RedisUnavailableError:
        return False
    try:
        return bool(await redis.ping())
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
