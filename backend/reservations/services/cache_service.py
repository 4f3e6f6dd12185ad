"""
Redis caching service for resource listings.

CACHING STRATEGY
================

What we cache:
  - Resource listing responses (paginated, JSON-serialized)
  - Cache key pattern: "resources:list:page={page}&size={size}&kind={kind}"

Why:
  - Browsing restaurants/activities/events/services is the most frequent read
  - Listings change only when an owner creates a resource

Invalidation strategy:
  - On resource creation: delete all resource list keys (prefix SCAN)
  - TTL-based expiry as safety net (5 minutes)

Why NOT cache availability, slots or capacity:
  - They change with every booking and must reflect the live busy set;
    a stale slot list would invite conflicts the engine then has to reject
"""

import json
from typing import Optional

from reservations.core.config import get_settings
from reservations.core.logging import get_logger
from reservations.core.metrics import record_cache_operation
from reservations.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()

RESOURCE_LIST_PREFIX = "resources:list:"


def _make_resource_list_key(page: int, page_size: int, kind: Optional[str]) -> str:
    return f"{RESOURCE_LIST_PREFIX}page={page}&size={page_size}&kind={kind or 'all'}"


async def get_cached_resources(page: int, page_size: int, kind: Optional[str]) -> Optional[dict]:
    """Retrieve cached resource list response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_resource_list_key(page, page_size, kind)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_resources(page: int, page_size: int, kind: Optional[str], data: dict) -> None:
    """Cache resource list response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_resource_list_key(page, page_size, kind)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_resource_cache() -> None:
    """Invalidate all cached resource listings."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{RESOURCE_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
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
