"""Async Redis client for the Celery broker (health checks only; no booking state lives in Redis)"""
import logging
from typing import Optional

import redis.asyncio as redis

from app.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_broker_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Lazily build the connection pool for the broker URL"""
    global _broker_pool
    if _broker_pool is None:
        _broker_pool = redis.ConnectionPool.from_url(
            settings.CELERY_BROKER_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=2,
            retry_on_timeout=True,
        )
    return _broker_pool


async def get_redis() -> redis.Redis:
    return redis.Redis(connection_pool=get_redis_pool())


async def ping_broker() -> str:
    """'healthy' or 'unhealthy: <reason>' for the notification broker"""
    try:
        client = await get_redis()
        await client.ping()
        return "healthy"
    except (redis.RedisError, OSError) as e:
        logger.warning(f"Broker health check failed: {e}")
        return f"unhealthy: {e}"
