"""
Redis caching service for the game schedule listing.

CACHING STRATEGY
================

What we cache:
  - Game listing responses (JSON-serialized), one entry per month filter
  - Cache key pattern: "games:list:month={month}"

Why:
  - The schedule is the most frequently read resource (every member page)
  - It only changes when the schedule importer runs

Invalidation strategy:
  - On schedule import: delete all game list keys (SCAN on the prefix)
  - TTL-based expiry as safety net

What we never cache:
  - Ticket inventory, requests and the allocation summary. Admins allocate
    against these; a stale available count would mislead them.

Redis is optional. When it is disabled or unreachable every call degrades to
a cache miss and the database is read directly.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ticket_manager.core.config import get_settings
from ticket_manager.core.logging import get_logger
from ticket_manager.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

GAME_LIST_PREFIX = "games:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_game_list_key(month: Optional[int]) -> str:
    return f"{GAME_LIST_PREFIX}month={month or 'all'}"


async def get_cached_games(month: Optional[int]) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_game_list_key(month)
    try:
        data = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data:
        logger.debug("cache_hit", key=key)
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    return None


async def set_cached_games(month: Optional[int], data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_game_list_key(month)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_game_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{GAME_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
