# app/config/redis.py
"""Redis connection used by health checks (the Celery broker lives here too)"""
import redis.asyncio as redis
from typing import Optional

from app.config.settings import get_settings

settings = get_settings()

_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=2,
            retry_on_timeout=True,
        )
    return _redis_pool


async def ping_redis() -> bool:
    """Round-trip to Redis; raises on connection errors"""
    client = redis.Redis(connection_pool=get_redis_pool())
    try:
        return bool(await client.ping())
    finally:
        await client.aclose()
