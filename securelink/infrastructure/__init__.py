"""Infrastructure layer for Redis, object storage and event handlers."""

from .in_memory_mapping_repository import InMemorySecureUrlMappingRepository
from .local_blob_store import LocalBlobStore
from .redis_mapping_repository import RedisSecureUrlMappingRepository
from .redis_repository import RedisConnectionManager, RedisRepository
from .storage_factory import StorageFactory

__all__ = [
    "InMemorySecureUrlMappingRepository",
    "LocalBlobStore",
    "RedisSecureUrlMappingRepository",
    "RedisRepository",
    "RedisConnectionManager",
    "StorageFactory",
]
