"""
Redis Configuration

Connection settings for the Redis instance that backs the Celery broker,
plus the health probe reported by /health.
"""

import logging
import os

import redis

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis configuration settings."""

    def __init__(self):
        self.url = os.getenv("REDIS_URL") or os.getenv(
            "CELERY_BROKER_URL", "redis://localhost:6379/0"
        )
        self.socket_timeout = float(os.getenv("REDIS_SOCKET_TIMEOUT", 2))


def redis_health_check(config: RedisConfig = None) -> bool:
    """
    Check Redis connection health.

    Returns:
        True if Redis answers PING, False otherwise
    """
    config = config or RedisConfig()
    try:
        client = redis.Redis.from_url(
            config.url,
            socket_timeout=config.socket_timeout,
            socket_connect_timeout=config.socket_timeout,
        )
        return bool(client.ping())
    except redis.RedisError as e:
        logger.warning(f"Redis health check failed: {e}")
        return False
