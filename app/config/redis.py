# app/config/redis.py
"""Redis connections: the app Redis and the Celery broker"""
import redis.asyncio as redis
from typing import Dict, Optional

from app.config.settings import get_settings

settings = get_settings()

REDIS_SCHEMES = ("redis://", "rediss://")

# One pool per Redis URL
_pools: Dict[str, redis.ConnectionPool] = {}


def get_redis_pool(url: Optional[str] = None) -> redis.ConnectionPool:
    url = url or settings.REDIS_URL
    if url not in _pools:
        _pools[url] = redis.ConnectionPool.from_url(
            url,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=2,
            retry_on_timeout=True,
        )
    return _pools[url]


async def get_redis(url: Optional[str] = None) -> redis.Redis:
    """Client on the shared pool for url (defaults to REDIS_URL)"""
    return redis.Redis(connection_pool=get_redis_pool(url))


async def ping(url: Optional[str] = None) -> str:
    """
    'healthy', 'unhealthy: <reason>', or 'skipped' when url is not a Redis
    URL (e.g. an in-memory Celery broker in tests).
    """
    url = url or settings.REDIS_URL
    if not url.startswith(REDIS_SCHEMES):
        return "skipped"

    client = await get_redis(url)
    try:
        await client.ping()
        return "healthy"
    except Exception as e:
        return f"unhealthy: {str(e)}"
    finally:
        await client.aclose()
