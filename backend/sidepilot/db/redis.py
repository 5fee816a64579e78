"""Optional Redis client backing the link preview cache.

Redis is never required: with REDIS_URL unset (or unreachable at startup) the
client stays None and previews are fetched on every request.
"""

import redis.asyncio as redis
import structlog

from sidepilot.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> bool:
    """Connect and ping. Returns False (and leaves Redis disabled) on failure."""
    global _redis

    if _redis is not None:
        return True

    redis_url = url or get_settings().redis_url
    if not redis_url:
        return False

    client = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except (redis.RedisError, OSError) as exc:
        await client.aclose()
        logger.warning("redis_unavailable", error=str(exc), error_type=type(exc).__name__)
        return False

    _redis = client
    return True


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
    _redis = None


def get_redis() -> redis.Redis:
    """Raises RuntimeError when Redis is disabled."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def get_optional_redis() -> redis.Redis | None:
    return _redis
