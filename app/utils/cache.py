import json
import logging
from typing import Any

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


async def cache_get(redis: Redis | None, key: str) -> Any:
    """Read a JSON value; a missing client or a Redis failure reads as a miss."""
    if redis is None:
        return None
    try:
        if val := await redis.get(key):
            return json.loads(val)
    except Exception as e:
        logger.warning("cache_get error key=%s err=%s", key, e)
    return None


async def cache_set(redis: Redis | None, key: str, value, ex: int = 60) -> None:
    if redis is None:
        return
    try:
        await redis.set(key, json.dumps(value, default=str), ex=ex)
    except Exception as e:
        logger.warning("cache_set error key=%s err=%s", key, e)


async def cache_delete(redis: Redis | None, key: str) -> None:
    if redis is None:
        return
    try:
        await redis.delete(key)
    except Exception as e:
        logger.warning("cache_delete error key=%s err=%s", key, e)


async def cache_delete_prefix(redis: Redis | None, prefix: str) -> int:
    """Drop every key under `prefix:`; returns how many were removed."""
    if redis is None:
        return 0
    removed = 0
    try:
        async for key in redis.scan_iter(match=f"{prefix}:*"):
            await cache_delete(redis, key)
            removed += 1
    except Exception as e:
        logger.warning("cache_delete_prefix error prefix=%s err=%s", prefix, e)
    return removed
