"""
Blob Store Interface

Abstract interface for object storage addressed by (bucket, key).
This abstraction keeps the domain layer infrastructure-agnostic: the secure
link registry and the file services only ever talk to this contract, and the
concrete adapters (local filesystem, Google Cloud Storage, S3/MinIO) live in
the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Dict, List, Optional

from .value_objects import ObjectStat, StoredObject


class IBlobStore(ABC):
    """
    Unified interface for key/value object storage.

    Contract Guarantees:
    - Objects are addressed by a bucket name and an object key
    - A missing object is reported with ObjectNotFoundError, never a
      silent default
    - Every other adapter failure (connection refused, timeout, permission
      problems on the storage side) is reported as StorageUnavailableError
    - delete() and ensure_bucket() are idempotent
    - exists() only answers True/False for objects that could be checked;
      if the store cannot be reached it raises StorageUnavailableError

    Thread Safety:
    - Implementations must be safe to share between request handler threads
    """

    @abstractmethod
    def exists(self, bucket: str, key: str) -> bool:
        """
        Check whether an object exists.

        Args:
            bucket: Bucket name
            key: Object key (e.g., 'avatars/abc123.png')

        Returns:
            True if the object exists, False otherwise

        Raises:
            StorageUnavailableError: If the store could not be queried
        """
        pass  # pragma: no cover

    @abstractmethod
    def stat(self, bucket: str, key: str) -> ObjectStat:
        """
        Get size, content type and custom metadata without reading the body.

        Args:
            bucket: Bucket name
            key: Object key

        Returns:
            ObjectStat for the object

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageUnavailableError: If the store could not be queried
        """
        pass  # pragma: no cover

    @abstractmethod
    def get_stream(self, bucket: str, key: str) -> BinaryIO:
        """
        Open the object body for streaming.

        The caller is responsible for closing the returned stream.

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageUnavailableError: If the store could not be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def put(
        self,
        bucket: str,
        key: str,
        content: BinaryIO,
        length: int,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> ObjectStat:
        """
        Store an object, overwriting any existing object with the same key.

        Args:
            bucket: Bucket name
            key: Object key
            content: Binary content positioned at the start
            length: Content length in bytes
            content_type: MIME type stored with the object
            metadata: Custom metadata (e.g., {'original-name': 'cat.png'})

        Returns:
            ObjectStat of the stored object

        Raises:
            StorageUnavailableError: If the write failed
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, bucket: str, key: str) -> bool:
        """
        Delete an object. Deleting a missing object succeeds.

        Returns:
            True once the object is gone

        Raises:
            StorageUnavailableError: If the store could not be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_objects(
        self, bucket: str, prefix: str = "", recursive: bool = True
    ) -> List[StoredObject]:
        """
        List objects whose key starts with prefix.

        With recursive=False only the first level below the prefix is
        returned; deeper keys are folded into folder entries.

        Raises:
            StorageUnavailableError: If the store could not be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def presigned_get(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        """
        Issue a native, time-limited download URL for an object.

        Raises:
            StorageUnavailableError: If the URL could not be signed
        """
        pass  # pragma: no cover

    @abstractmethod
    def presigned_put(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        """
        Issue a native, time-limited URL that accepts PUT uploads of an object.

        Raises:
            StorageUnavailableError: If the URL could not be signed
        """
        pass  # pragma: no cover

    @abstractmethod
    def copy(self, source_bucket: str, key: str, target_bucket: str) -> ObjectStat:
        """
        Copy an object to another bucket under the same key, keeping its
        content type and metadata.

        Returns:
            ObjectStat of the copy

        Raises:
            ObjectNotFoundError: If the source object does not exist
            StorageUnavailableError: If the store could not be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        """
        Build the direct, stable URL of an object in a publicly readable bucket.

        No request is made to the store.
        """
        pass  # pragma: no cover

    @abstractmethod
    def ensure_bucket(self, bucket: str) -> None:
        """
        Create the bucket if it does not exist yet.

        Raises:
            StorageUnavailableError: If the bucket could not be checked or created
        """
        pass  # pragma: no cover

    def health_check(self) -> bool:
        """Return True if the store answers requests. Adapters may override."""
        return True
