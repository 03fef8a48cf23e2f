"""
Background Cache Warmer
=======================

Runs every ``cache_refresh_interval_seconds`` (default 30 s).

Each cycle reloads all rate cards and the active surge rules from the
store and writes them into the reference-data cache, so quotes rarely
pay for a store round-trip and an administrator's edit reaches every
process within one interval even without explicit invalidation.

Concurrency safety
------------------
With the Redis cache backend several API processes share one cache; a
**Redis distributed lock** makes sure only one of them reloads per cycle.
The in-memory backend is per-process, so no lock is taken.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis

from src.config import settings
from src.domain.errors import LookupFailure
from src.infrastructure.cache import Cache
from src.infrastructure.database import async_session_factory
from src.infrastructure.locks import DistributedLock
from src.infrastructure.repositories import RateCardRepository, SurgeRuleRepository
from src.services.catalog import RateCatalog, SurgeRuleSource

logger = logging.getLogger(__name__)

LOCK_NAME = "pricing_cache_warmer"

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_cache_warmer(cache: Cache, redis_client: Optional[aioredis.Redis] = None) -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop(cache, redis_client))
    logger.info(
        "Cache warmer started (interval=%ds, shared=%s)",
        settings.cache_refresh_interval_seconds,
        redis_client is not None,
    )


async def stop_cache_warmer() -> None:
    global _task, _stop_event
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    _task = None
    _stop_event = None
    logger.info("Cache warmer stopped")


async def run_refresh_cycle(
    cache: Cache,
    redis_client: Optional[aioredis.Redis] = None,
    session_factory=async_session_factory,
) -> bool:
    """Refresh rate cards and surge rules once.  Returns False when skipped."""
    lock: Optional[DistributedLock] = None
    if redis_client is not None:
        lock = DistributedLock(
            redis_client, LOCK_NAME, ttl_seconds=max(5, settings.cache_refresh_interval_seconds)
        )
        if not await lock.acquire():
            logger.debug("Lock held by another process, skipping cache refresh")
            return False

    try:
        async with session_factory() as session:
            catalog = RateCatalog(
                RateCardRepository(session), cache, settings.rate_cache_ttl_seconds
            )
            surge = SurgeRuleSource(
                SurgeRuleRepository(session), cache, settings.surge_cache_ttl_seconds
            )
            try:
                cards = await catalog.refresh()
                rules = await surge.refresh()
            except LookupFailure as exc:
                logger.warning("Cache refresh skipped, store unavailable: %s", exc)
                return False
        logger.debug("Cache refreshed: %d rate cards, %d active surge rules", cards, rules)
        return True
    finally:
        if lock is not None:
            await lock.release()


# ── Internals ─────────────────────────────────────────────────────────


async def _loop(cache: Cache, redis_client: Optional[aioredis.Redis]) -> None:
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_refresh_cycle(cache, redis_client)
        except Exception:
            logger.exception("Unhandled error in cache refresh cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.cache_refresh_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass
