"""
Redis caching for event listings.

What we cache:
  - Event listing pages (JSON-serialized)
  - Key pattern: "events:list:day={today}&page={page}&size={size}&upcoming={upcoming}"

Invalidation:
  - Every committed reservation change or cancellation moves `total_reserved`,
    so all list keys are dropped (prefix SCAN + DELETE)
  - The day is part of the key, so "upcoming" never serves yesterday's view
  - TTL as a safety net

Single-event reads are never cached: the reservation pages need live seat
counts. Redis is optional; every function fails open when it is down.
"""

import json
from typing import Optional

import redis.asyncio as redis
from ticket_reserve.core.config import get_settings
from ticket_reserve.core.logging import get_logger
from ticket_reserve.core.metrics import record_cache_operation

logger = get_logger(__name__)

LIST_KEY_PREFIX = "events:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_event_list_key(today: str, page: int, page_size: int, upcoming_only: bool) -> str:
    return f"{LIST_KEY_PREFIX}day={today}&page={page}&size={page_size}&upcoming={upcoming_only}"


async def get_cached_events(today: str, page: int, page_size: int, upcoming_only: bool) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_event_list_key(today, page, page_size, upcoming_only)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_events(
    today: str,
    page: int,
    page_size: int,
    upcoming_only: bool,
    data: dict,
) -> None:
    client = await get_redis()
    if not client:
        return

    settings = get_settings()
    key = _make_event_list_key(today, page, page_size, upcoming_only)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event_cache() -> None:
    """Drop every cached event list page."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{LIST_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Cache status for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
