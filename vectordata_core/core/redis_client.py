"""
Async Redis client

Provides a shared, lazily-initialized Async Redis connection for the Redis
record stores. Responses are not decoded because hash records carry binary
vector entries.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .config import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_redis() -> aioredis.Redis:
    settings = get_settings()
    return aioredis.from_url(settings.redis_url, decode_responses=False)


async def ensure_redis_connection() -> bool:
    """Ping Redis once to ensure connection is available."""
    try:
        client = get_redis()
        pong = await client.ping()
        return bool(pong)
    except (RedisError, OSError) as e:
        logger.warning(f"Redis connection check failed: {e}")
        return False
