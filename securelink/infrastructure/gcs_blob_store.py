"""
Google Cloud Storage Blob Store Implementation

Concrete implementation of IBlobStore for Google Cloud Storage.
This implementation uses the google-cloud-storage library to perform object
operations on GCS, following the repository pattern to keep infrastructure
concerns separate from domain logic.
"""

import logging
from datetime import timedelta
from typing import BinaryIO, Dict, List, Optional
from urllib.parse import quote

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import storage

from securelink.domain.errors import ObjectNotFoundError, StorageUnavailableError
from securelink.domain.file_storage.blob_store import IBlobStore
from securelink.domain.file_storage.value_objects import ObjectStat, StoredObject

logger = logging.getLogger(__name__)

GCS_PUBLIC_BASE_URL = "https://storage.googleapis.com"

# Transport failures surface as OSError subclasses (requests, urllib3)
_UNAVAILABLE_ERRORS = (GoogleAPIError, OSError)


class GCSBlobStore(IBlobStore):
    """
    Google Cloud Storage implementation of IBlobStore.

    Thread Safety:
        This implementation is thread-safe. The GCS client handles concurrent
        operations safely.

    Attributes:
        client: Google Cloud Storage client instance
        public_base_url: Prefix of direct URLs for publicly readable buckets
    """

    def __init__(
        self,
        client: Optional[storage.Client] = None,
        public_base_url: Optional[str] = None,
        location: Optional[str] = None,
    ):
        """
        Initialize the GCS blob store.

        Args:
            client: Storage client (default: client from ambient credentials)
            public_base_url: Direct URL prefix (default: storage.googleapis.com)
            location: Location used when ensure_bucket() creates a bucket
        """
        self.client = client or storage.Client()
        self.public_base_url = (public_base_url or GCS_PUBLIC_BASE_URL).rstrip("/")
        self.location = location

    def _get_blob(self, bucket: str, key: str) -> storage.Blob:
        """Fetch blob metadata, raising ObjectNotFoundError when missing."""
        if not key or not key.strip():
            raise ObjectNotFoundError(bucket, key)
        try:
            blob = self.client.bucket(bucket).get_blob(key)
        except NotFound as e:
            # Missing bucket
            raise ObjectNotFoundError(bucket, key, e) from e
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"GCS lookup failed for {bucket}/{key}", e) from e

        if blob is None:
            raise ObjectNotFoundError(bucket, key)
        return blob

    # IBlobStore interface methods

    def exists(self, bucket: str, key: str) -> bool:
        if not key or not key.strip():
            return False
        try:
            return self.client.bucket(bucket).blob(key).exists()
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"GCS lookup failed for {bucket}/{key}", e) from e

    def stat(self, bucket: str, key: str) -> ObjectStat:
        blob = self._get_blob(bucket, key)
        return ObjectStat(
            size=blob.size or 0,
            content_type=blob.content_type or "application/octet-stream",
            metadata={k.lower(): v for k, v in (blob.metadata or {}).items()},
            etag=blob.etag,
            last_modified=blob.updated,
        )

    def get_stream(self, bucket: str, key: str) -> BinaryIO:
        blob = self._get_blob(bucket, key)
        try:
            return blob.open("rb")
        except NotFound as e:
            raise ObjectNotFoundError(bucket, key, e) from e
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Failed to open {bucket}/{key}", e) from e

    def put(
        self,
        bucket: str,
        key: str,
        content: BinaryIO,
        length: int,
        content_type: str = "application/octet-stream",
        metadata: Optional[Dict[str, str]] = None,
    ) -> ObjectStat:
        blob = self.client.bucket(bucket).blob(key)
        blob.metadata = metadata or {}
        try:
            # Reset position to beginning if possible
            if hasattr(content, "seek"):
                content.seek(0)
            blob.upload_from_file(content, size=length, content_type=content_type)
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Failed to save {bucket}/{key} to GCS", e) from e

        logger.info(f"Stored object in GCS: {bucket}/{key} ({length} bytes)")
        return ObjectStat(
            size=blob.size or length,
            content_type=content_type,
            metadata={k.lower(): v for k, v in (metadata or {}).items()},
            etag=blob.etag,
            last_modified=blob.updated,
        )

    def delete(self, bucket: str, key: str) -> bool:
        if not key or not key.strip():
            return True  # Idempotent - invalid key treated as success
        try:
            self.client.bucket(bucket).blob(key).delete()
        except NotFound:
            pass  # Idempotent - non-existent object treated as success
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Failed to delete {bucket}/{key} from GCS", e) from e
        return True

    def list_objects(
        self, bucket: str, prefix: str = "", recursive: bool = True
    ) -> List[StoredObject]:
        try:
            iterator = self.client.list_blobs(
                bucket, prefix=prefix or None, delimiter=None if recursive else "/"
            )
            objects = [
                StoredObject(key=blob.name, size=blob.size or 0, last_modified=blob.updated)
                for blob in iterator
            ]
            # Folder prefixes are only populated once the pages were consumed
            folders = sorted(getattr(iterator, "prefixes", None) or [])
        except NotFound:
            return []
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Failed to list GCS bucket {bucket}", e) from e

        objects.extend(StoredObject(key=folder, is_folder=True) for folder in folders)
        return objects

    def presigned_get(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        try:
            return self.client.bucket(bucket).blob(key).generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="GET",
            )
        except (_UNAVAILABLE_ERRORS + (AttributeError, ValueError)) as e:
            # Credentials without a signing key raise AttributeError
            raise StorageUnavailableError(f"Failed to sign URL for {bucket}/{key}", e) from e

    def presigned_put(self, bucket: str, key: str, ttl_seconds: int = 3600) -> str:
        try:
            return self.client.bucket(bucket).blob(key).generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="PUT",
            )
        except (_UNAVAILABLE_ERRORS + (AttributeError, ValueError)) as e:
            raise StorageUnavailableError(
                f"Failed to sign upload URL for {bucket}/{key}", e
            ) from e

    def copy(self, source_bucket: str, key: str, target_bucket: str) -> ObjectStat:
        blob = self._get_blob(source_bucket, key)
        try:
            copied = self.client.bucket(source_bucket).copy_blob(
                blob, self.client.bucket(target_bucket), key
            )
        except NotFound as e:
            raise ObjectNotFoundError(source_bucket, key, e) from e
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(
                f"Failed to copy {source_bucket}/{key} to {target_bucket}", e
            ) from e

        logger.info(f"Copied GCS object {source_bucket}/{key} to {target_bucket}")
        return ObjectStat(
            size=copied.size or blob.size or 0,
            content_type=copied.content_type or blob.content_type or "application/octet-stream",
            metadata={k.lower(): v for k, v in (copied.metadata or blob.metadata or {}).items()},
            etag=copied.etag,
            last_modified=copied.updated,
        )

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{quote(bucket, safe='')}/{quote(key, safe='/')}"

    def ensure_bucket(self, bucket: str) -> None:
        try:
            if self.client.lookup_bucket(bucket) is None:
                self.client.create_bucket(bucket, location=self.location)
                logger.info(f"Created GCS bucket: {bucket}")
        except _UNAVAILABLE_ERRORS as e:
            raise StorageUnavailableError(f"Failed to ensure GCS bucket {bucket}", e) from e

    def health_check(self) -> bool:
        try:
            next(iter(self.client.list_buckets(max_results=1)), None)
            return True
        except _UNAVAILABLE_ERRORS as e:
            logger.warning(f"GCS health check failed: {e}")
            return False
