"""
File Application Service

Coordinates upload, listing and deletion of files in the public and
private buckets.
"""

import logging
from typing import BinaryIO, Dict, List, Optional

from securelink.config.storage_config import StorageConfig
from securelink.domain.errors import ErrorCategory, FileValidationError
from securelink.domain.file_storage import (
    BucketStats,
    IBlobStore,
    StoredFile,
    StoredFileRef,
    StoredObject,
    Visibility,
    generate_random_id,
)
from securelink.domain.secure_links import LinkClass, utc_now

from .file_access_service import FileAccessService

logger = logging.getLogger(__name__)

UPLOAD_SOURCE = "website"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Longest lifetime S3 and GCS accept for a V4 signature
MAX_UPLOAD_URL_TTL = 7 * 24 * 3600


class FileService:
    """
    Application service for stored file operations.

    Orchestrates validation, naming, metadata and URL generation around the
    blob store. Buckets are created on first use.
    """

    def __init__(
        self,
        blob_store: IBlobStore,
        access_service: FileAccessService,
        config: Optional[StorageConfig] = None,
    ):
        """
        Initialize FileService.

        Args:
            blob_store: Blob store holding the files
            access_service: Service producing file URLs
            config: Buckets and upload limits (default: from environment)
        """
        self.blob_store = blob_store
        self.access_service = access_service
        self.config = config or StorageConfig()

    def bucket_for(self, visibility: Visibility) -> str:
        return self.config.bucket_for(visibility)

    def validate_upload(self, size: int, content_type: Optional[str]) -> None:
        """
        Reject uploads that are too large or of a type that is not allowed.

        An empty content type is accepted; the file is then stored as
        application/octet-stream. The type is never guessed from the file
        name, so a name like page.html cannot make the file render as HTML.

        Raises:
            FileValidationError: With FILE_TOO_LARGE or FILE_TYPE_NOT_ALLOWED
        """
        if size > self.config.max_upload_bytes:
            raise FileValidationError(
                f"File of {size} bytes exceeds limit of {self.config.max_upload_bytes}",
                ErrorCategory.FILE_TOO_LARGE,
            )
        if content_type and content_type not in self.config.allowed_content_types:
            raise FileValidationError(
                f"Content type not allowed: {content_type}",
                ErrorCategory.FILE_TYPE_NOT_ALLOWED,
            )

    def upload_file(
        self,
        content: BinaryIO,
        original_name: str,
        size: int,
        visibility: Optional[Visibility] = None,
        folder: Optional[str] = None,
        file_name: Optional[str] = None,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        link_class: LinkClass = LinkClass.STANDARD,
    ) -> StoredFile:
        """
        Validate and store an uploaded file.

        Args:
            content: File content positioned at the start
            original_name: Name of the file on the uploader's machine
            size: Content length in bytes
            visibility: Target visibility; images default to public, everything
                else to private
            folder: Key prefix (default: upload date as YYYY/MM/DD)
            file_name: Stored name (default: random id keeping the extension)
            content_type: MIME type (default: application/octet-stream)
            metadata: Extra custom metadata merged into the standard entries
            link_class: Link class of the returned URL for private files

        Returns:
            StoredFile record with its access URL

        Raises:
            FileValidationError: If the upload is rejected
            StorageUnavailableError: If the blob store failed
            FailedToGenerateUrlError: If the access URL could not be produced
        """
        self.validate_upload(size, content_type)

        mime_type = content_type or DEFAULT_CONTENT_TYPE
        if visibility is None:
            visibility = Visibility.PUBLIC if mime_type.startswith("image/") else Visibility.PRIVATE

        now = utc_now()
        folder = folder if folder is not None else now.strftime("%Y/%m/%d")
        stored_name = StoredFile.build_file_name(original_name, file_name)
        object_key = StoredFile.build_object_key(stored_name, folder)
        bucket_name = self.bucket_for(visibility)
        file_id = generate_random_id()

        object_metadata = dict(metadata or {})
        object_metadata.update({
            "original-name": original_name,
            "upload-date": now.isoformat(),
            "file-id": file_id,
            "visibility": visibility.value,
            "source": UPLOAD_SOURCE,
        })

        self.blob_store.ensure_bucket(bucket_name)
        stat = self.blob_store.put(
            bucket_name,
            object_key,
            content,
            size,
            content_type=mime_type,
            metadata=object_metadata,
        )
        logger.info(f"Uploaded file to {bucket_name}/{object_key} ({stat.size} bytes)")

        stored = StoredFile(
            id=file_id,
            original_name=original_name,
            file_name=stored_name,
            mime_type=mime_type,
            size=stat.size,
            bucket_name=bucket_name,
            object_key=object_key,
            visibility=visibility,
            created_at=now,
            folder=folder or None,
        )
        stored.url = self.access_service.get_file_url(stored.ref(), link_class)
        return stored

    def list_files(self, visibility: Visibility, prefix: str = "") -> List[StoredObject]:
        """List the objects of a visibility's bucket."""
        return self.blob_store.list_objects(self.bucket_for(visibility), prefix=prefix)

    def delete_file(self, visibility: Visibility, object_key: str) -> bool:
        """
        Delete a stored file. Deleting a missing file succeeds.

        Secure links pointing at the file stay until they expire; resolving
        them afterwards returns not found.
        """
        bucket_name = self.bucket_for(visibility)
        deleted = self.blob_store.delete(bucket_name, object_key)
        logger.info(f"Deleted file {bucket_name}/{object_key}")
        return deleted

    def update_visibility(
        self,
        object_key: str,
        from_visibility: Visibility,
        to_visibility: Visibility,
    ) -> StoredFileRef:
        """
        Move a file between the public and private buckets.

        The object is copied under the same key, then removed from the source
        bucket. Secure links issued for the old location resolve to not found
        afterwards. Moving a file to the visibility it already has is a no-op.

        Raises:
            ObjectNotFoundError: If the file does not exist in the source bucket
            StorageUnavailableError: If the blob store failed
        """
        source_bucket = self.bucket_for(from_visibility)
        target_bucket = self.bucket_for(to_visibility)
        if source_bucket == target_bucket:
            # Still report a missing file
            self.blob_store.stat(source_bucket, object_key)
            return StoredFileRef(source_bucket, object_key, to_visibility)

        self.blob_store.ensure_bucket(target_bucket)
        self.blob_store.copy(source_bucket, object_key, target_bucket)
        self.blob_store.delete(source_bucket, object_key)
        logger.info(
            f"Moved file {object_key} from {source_bucket} to {target_bucket}"
        )
        return StoredFileRef(target_bucket, object_key, to_visibility)

    def get_upload_url(
        self,
        visibility: Visibility,
        object_key: str,
        ttl_seconds: int = 3600,
    ) -> str:
        """
        Issue a time-limited URL a client can PUT the file body to directly.

        Raises:
            FileValidationError: If the key is empty or the lifetime out of range
            StorageUnavailableError: If the URL could not be signed
        """
        if not object_key or not object_key.strip():
            raise FileValidationError("Object key is required", ErrorCategory.INVALID_REQUEST)
        if not 0 < ttl_seconds <= MAX_UPLOAD_URL_TTL:
            raise FileValidationError(
                f"Upload URL lifetime must be between 1 and {MAX_UPLOAD_URL_TTL} seconds",
                ErrorCategory.INVALID_REQUEST,
            )

        bucket_name = self.bucket_for(visibility)
        self.blob_store.ensure_bucket(bucket_name)
        url = self.blob_store.presigned_put(bucket_name, object_key, ttl_seconds)
        logger.info(f"Issued upload URL for {bucket_name}/{object_key} ({ttl_seconds}s)")
        return url

    def get_file_url(
        self,
        visibility: Visibility,
        object_key: str,
        link_class: LinkClass = LinkClass.STANDARD,
    ) -> str:
        """Access URL of an existing file."""
        ref = StoredFileRef(self.bucket_for(visibility), object_key, visibility)
        return self.access_service.get_file_url(ref, link_class)

    def get_bucket_stats(self, visibility: Visibility) -> BucketStats:
        """Object count, total size and top-level folders of a bucket."""
        objects = self.list_files(visibility)
        folders = sorted({obj.key.split("/", 1)[0] for obj in objects if "/" in obj.key})
        files = [obj for obj in objects if not obj.is_folder]
        return BucketStats(
            object_count=len(files),
            total_size=sum(obj.size for obj in files),
            folders=tuple(folders),
        )
