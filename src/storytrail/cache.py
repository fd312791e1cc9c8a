"""Redis connection pool and JSON read-through cache helpers.

Redis is optional: rate limiting and leaderboard caching step aside when the
pool was never initialised, and every cache helper degrades to a miss.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client. Raises RuntimeError when Redis is not configured."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def get_json(key: str) -> Any | None:
    """Return the decoded value cached under ``key``, or None on a miss."""
    if _pool is None:
        return None
    try:
        raw = await _pool.get(key)
    except redis.RedisError:
        logger.warning("cache_read_failed", key=key, exc_info=True)
        return None
    return json.loads(raw) if raw else None


async def set_json(key: str, value: Any, ttl_seconds: int) -> None:
    if _pool is None:
        return
    try:
        await _pool.setex(key, ttl_seconds, json.dumps(value, default=str))
    except redis.RedisError:
        logger.warning("cache_write_failed", key=key, exc_info=True)


async def invalidate(key: str) -> None:
    if _pool is None:
        return
    try:
        await _pool.delete(key)
    except redis.RedisError:
        logger.warning("cache_invalidate_failed", key=key, exc_info=True)
