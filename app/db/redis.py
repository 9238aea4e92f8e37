# app/db/redis.py
import logging

import redis.asyncio as redis

from app.core.config import Settings

logger = logging.getLogger(__name__)


async def connect(settings: Settings) -> redis.Redis | None:
    """
    Connect Redis if REDIS_URL is set.
    Returns None when not configured or unreachable; callers treat a missing
    client as "no cache".
    """
    if not settings.REDIS_URL:
        logger.warning("No REDIS_URL configured, skipping Redis connection.")
        return None

    try:
        logger.info("Connecting to Redis at %s", settings.REDIS_URL)
        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await client.ping()
        logger.info("Redis connection successful")
        return client
    except Exception as e:
        logger.warning("Failed to connect to Redis, cache disabled: %s", e)
        return None


async def disconnect(client: redis.Redis | None) -> None:
    if client:
        await client.aclose()
        logger.info("Redis disconnected")
