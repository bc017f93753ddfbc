"""Redis settings for the arq settlement worker.

The worker shares ``REDIS_URL`` with the summary cache. A ``rediss://`` URL
turns on TLS.
"""

from urllib.parse import urlparse

from arq.connections import RedisSettings
from libs.common.config import get_settings

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_settings(url: str | None = None) -> RedisSettings:
    """Build arq ``RedisSettings`` from ``url`` or ``Settings.REDIS_URL``."""
    parsed = urlparse(url or get_settings().REDIS_URL or DEFAULT_REDIS_URL)
    database = parsed.path.lstrip("/")

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(database) if database else 0,
        username=parsed.username or None,
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
    )
