"""
Redis connection management for the Order Service.
One connection pool per process, shared by every repository instance.
"""

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)

_redis_instance: Optional[redis.Redis] = None


def create_redis(
    url: str,
    socket_timeout: Optional[float] = None,
    max_connections: Optional[int] = None
) -> redis.Redis:
    """
    Build a pooled Redis client.

    The client is thread-safe; commands borrow a connection from the pool
    for the duration of a call. No connection is opened until the first
    command is sent.
    """
    pool = redis.ConnectionPool.from_url(
        url,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        max_connections=max_connections,
        decode_responses=True,
    )
    logger.info(f"Redis pool created for {pool.connection_kwargs.get('host', url)}")
    return redis.Redis(connection_pool=pool)


def get_redis() -> redis.Redis:
    """Get the global Redis client, creating it from config on first use."""
    global _redis_instance
    if _redis_instance is None:
        from .config import get_config
        config = get_config()
        _redis_instance = create_redis(
            config.redis_url,
            socket_timeout=config.get_float('redis', 'socket_timeout', default=5.0),
            max_connections=config.get_int('redis', 'max_connections', default=50) or None,
        )
    return _redis_instance


def close_redis() -> None:
    """Release the global client's pooled connections."""
    global _redis_instance
    if _redis_instance is not None:
        _redis_instance.close()
        _redis_instance.connection_pool.disconnect()
        _redis_instance = None
        logger.info("Redis connections closed")


def ping(client: redis.Redis) -> bool:
    """Check that the server answers; never raises."""
    try:
        return bool(client.ping())
    except redis.exceptions.RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        return False
