"""
Redis Repository Base Class

Provides JSON storage, key scanning and server-side scripts on top of a
Redis client. Implements the repository pattern for Redis-based storage.
"""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

import redis
from redis.exceptions import RedisError

from securelink.domain.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


class RedisRepository:
    """
    Base Redis repository.

    Redis failures are logged and re-raised as StorageUnavailableError so
    callers never confuse an outage with a missing key.
    """

    def __init__(self, redis_client: redis.Redis, key_prefix: str = ""):
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Create a prefixed key for Redis storage."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    def _strip_prefix(self, redis_key) -> str:
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        if self.key_prefix:
            return redis_key[len(self.key_prefix) + 1:]
        return redis_key

    def set_json(
        self,
        key: str,
        data: Dict[str, Any],
        ttl: Optional[int] = None,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Set JSON data with optional TTL.

        Args:
            key: Redis key
            data: Dictionary to store as JSON
            ttl: Time to live in seconds
            only_if_absent: Do not overwrite an existing key (SET NX)

        Returns:
            True if the value was written, False if NX prevented it
        """
        try:
            redis_key = self._make_key(key)
            json_data = json.dumps(data)
            result = self.redis.set(
                redis_key, json_data, ex=ttl if ttl else None, nx=only_if_absent
            )
            return bool(result)
        except RedisError as e:
            logger.error(f"Error setting JSON data for key {key}: {e}")
            raise StorageUnavailableError("Redis write failed", e) from e

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get JSON data from Redis.

        Args:
            key: Redis key

        Returns:
            Dictionary if found and valid JSON, None otherwise
        """
        try:
            data = self.redis.get(self._make_key(key))
        except RedisError as e:
            logger.error(f"Error getting JSON data for key {key}: {e}")
            raise StorageUnavailableError("Redis read failed", e) from e

        if data is None:
            return None

        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Corrupt JSON stored under key {key}: {e}")
            return None

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False if it did not exist
        """
        try:
            return self.redis.delete(self._make_key(key)) > 0
        except RedisError as e:
            logger.error(f"Error deleting key {key}: {e}")
            raise StorageUnavailableError("Redis delete failed", e) from e

    def exists(self, key: str) -> bool:
        """Check if a key exists in Redis."""
        try:
            return self.redis.exists(self._make_key(key)) > 0
        except RedisError as e:
            logger.error(f"Error checking existence of key {key}: {e}")
            raise StorageUnavailableError("Redis read failed", e) from e

    def iter_keys_by_pattern(self, pattern: str, count: int = 500) -> Iterator[str]:
        """
        Iterate over keys matching a pattern using SCAN.

        Yields:
            Matching keys without the repository prefix
        """
        try:
            for redis_key in self.redis.scan_iter(match=self._make_key(pattern), count=count):
                yield self._strip_prefix(redis_key)
        except RedisError as e:
            logger.error(f"Error scanning keys by pattern {pattern}: {e}")
            raise StorageUnavailableError("Redis scan failed", e) from e

    def get_keys_by_pattern(self, pattern: str) -> List[str]:
        """Get all keys matching a pattern (without prefix)."""
        return list(self.iter_keys_by_pattern(pattern))

    def register_script(self, lua_script: str):
        """Register a Lua script; the returned callable runs it atomically on the server."""
        return self.redis.register_script(lua_script)

    def run_script(self, script, keys: List[str], args: List[Any]) -> Any:
        """
        Run a registered script against prefixed keys.

        Raises:
            StorageUnavailableError: If the script could not be run
        """
        try:
            return script(keys=[self._make_key(key) for key in keys], args=args)
        except RedisError as e:
            logger.error(f"Error running Redis script on {keys}: {e}")
            raise StorageUnavailableError("Redis script failed", e) from e


class RedisConnectionManager:
    """Manages Redis connection with connection pooling."""

    def __init__(self, host: str = 'localhost', port: int = 6379, db: int = 0,
                 max_connections: int = 20, decode_responses: bool = False,
                 password: Optional[str] = None):
        self.connection_pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            max_connections=max_connections,
            decode_responses=decode_responses,
            retry_on_timeout=True,
            socket_keepalive=True,
        )
        self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client instance with connection pooling."""
        if self._client is None:
            self._client = redis.Redis(connection_pool=self.connection_pool)
        return self._client

    def health_check(self) -> bool:
        """Check if Redis connection is healthy."""
        try:
            return bool(self.client.ping())
        except RedisError:
            return False
