"""
TTL caches for pricing reference data.

Two interchangeable backends with the same async API:

* ``InMemoryCache`` -- per-process dict; the clock is injected so tests
  can expire entries without sleeping.
* ``RedisCache``    -- shared across API processes; values are stored as
  JSON under a key prefix with ``SET ... EX``.

Values must be JSON-serialisable (callers store encoded dicts and lists).
A cache never raises on read: a Redis error is logged and reported as a
miss so pricing falls through to the store.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class Cache(Protocol):
    async def get(self, key: str) -> Optional[Any]: ...

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    async def invalidate(self, *keys: str) -> None: ...


class InMemoryCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    async def invalidate(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()


class RedisCache:
    def __init__(self, client: aioredis.Redis, prefix: str = "pricing:"):
        self.redis = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as exc:
            logger.warning("Redis cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.redis.set(self._key(key), json.dumps(value), ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("Redis cache write failed for %s: %s", key, exc)

    async def invalidate(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.redis.delete(*(self._key(k) for k in keys))
        except RedisError as exc:
            logger.warning("Redis cache invalidation failed for %s: %s", keys, exc)
