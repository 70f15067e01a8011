"""
Redis Configuration

Configures Redis connection settings and provides factory functions
for the shared secure link store.
"""

import os
from typing import Optional

from redis.connection import parse_url

from securelink.infrastructure.redis_repository import RedisConnectionManager, RedisRepository


class RedisConfig:
    """Redis configuration settings."""

    def __init__(self):
        self.host = os.getenv("REDIS_HOST", "localhost")
        self.port = int(os.getenv("REDIS_PORT", 6379))
        self.db = int(os.getenv("REDIS_DB", 0))
        self.password = os.getenv("REDIS_PASSWORD")
        self.max_connections = int(os.getenv("REDIS_MAX_CONNECTIONS", 20))
        self.key_prefix = os.getenv("REDIS_KEY_PREFIX", "securelink")

        # Redis URL format: redis://[:password@]host:port/db
        self.url = os.getenv("REDIS_URL")
        if self.url:
            connection_params = parse_url(self.url)
            self.host = connection_params.get("host", self.host)
            self.port = connection_params.get("port", self.port)
            self.db = connection_params.get("db", self.db)
            self.password = connection_params.get("password", self.password)


# Global Redis connection manager
_redis_manager: Optional[RedisConnectionManager] = None


def init_redis(config: Optional[RedisConfig] = None) -> RedisConnectionManager:
    """
    Initialize Redis connection manager.

    Args:
        config: Redis configuration, uses default if None

    Returns:
        RedisConnectionManager instance
    """
    global _redis_manager

    config = config or RedisConfig()
    _redis_manager = RedisConnectionManager(
        host=config.host,
        port=config.port,
        db=config.db,
        max_connections=config.max_connections,
        password=config.password or None,
    )
    return _redis_manager


def get_redis_client():
    """
    Get Redis client instance.

    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _redis_manager is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")

    return _redis_manager.client


def get_redis_repository(key_prefix: Optional[str] = None) -> RedisRepository:
    """
    Get Redis repository with a key prefix.

    Args:
        key_prefix: Prefix for all keys (default: REDIS_KEY_PREFIX)
    """
    if key_prefix is None:
        key_prefix = RedisConfig().key_prefix
    return RedisRepository(get_redis_client(), key_prefix)


def redis_health_check() -> bool:
    """
    Check Redis connection health.

    Returns:
        True if Redis is healthy (or not in use), False otherwise
    """
    if _redis_manager is None:
        return False

    return _redis_manager.health_check()

