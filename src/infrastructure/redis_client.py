"""Redis async connection pool, shared by the cache and the warmer lock."""

import redis.asyncio as aioredis

from src.config import settings

_pool: aioredis.ConnectionPool | None = None


def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool.

    The pool is created lazily so processes on the in-memory cache
    backend never open a Redis connection.
    """
    global _pool
    if _pool is None:
        _pool = aioredis.ConnectionPool.from_url(settings.redis_url, decode_responses=True)
    return aioredis.Redis(connection_pool=_pool)


async def close_redis() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
