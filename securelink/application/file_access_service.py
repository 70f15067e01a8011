"""
File Access Application Service

Chooses how a stored file is handed to a client (direct URL, presigned URL
or secure link) and serves secure link downloads.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import BinaryIO, Dict, Optional
from urllib.parse import quote

from securelink.config.link_config import SecureLinkConfig
from securelink.domain.errors import (
    FailedToGenerateUrlError,
    ObjectNotFoundError,
    StorageUnavailableError,
)
from securelink.domain.file_storage import IBlobStore, ObjectStat, StoredFileRef, Visibility
from securelink.domain.secure_links import LinkClass, ResolvedLocation, SecureUrlRegistry

logger = logging.getLogger(__name__)

DOWNLOAD_CACHE_CONTROL = "private, max-age=3600"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


@dataclass(frozen=True)
class LinkPolicy:
    """Lifetime and access cap applied to one link class."""
    expires_in: Optional[timedelta]
    max_accesses: Optional[int] = None

    @property
    def expires_in_seconds(self) -> Optional[int]:
        return int(self.expires_in.total_seconds()) if self.expires_in else None


def content_disposition(filename: str) -> str:
    """
    Build an inline Content-Disposition value.

    Non-ASCII names get an RFC 5987 filename* parameter next to an ASCII
    fallback, since header values must be latin-1.
    """
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
        return f'inline; filename="{escaped}"'
    except UnicodeEncodeError:
        fallback = "".join(c if ord(c) < 128 else "_" for c in escaped)
        return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@dataclass
class SecureDownload:
    """
    A resolved secure link ready to be written to an HTTP response.

    stream is None for HEAD requests; location is None for objects served
    without a secure link. The caller closes the stream.
    """
    location: Optional[ResolvedLocation]
    stat: ObjectStat
    stream: Optional[BinaryIO] = None

    def headers(self) -> Dict[str, str]:
        """Response headers for the download."""
        headers = {
            "Content-Type": self.stat.content_type or "application/octet-stream",
            "Content-Length": str(self.stat.size),
            "Cache-Control": DOWNLOAD_CACHE_CONTROL,
        }
        headers.update(SECURITY_HEADERS)
        if self.stat.original_name:
            headers["Content-Disposition"] = content_disposition(self.stat.original_name)
        return headers


class FileAccessService:
    """
    Application service deciding the access URL of stored files.

    Public files get their direct URL. Private files get either a native
    presigned URL or a secure link minted by the registry; the presigned URL
    is what the secure link resolves to.
    """

    def __init__(
        self,
        blob_store: IBlobStore,
        registry: SecureUrlRegistry,
        config: Optional[SecureLinkConfig] = None,
    ):
        """
        Initialize FileAccessService.

        Args:
            blob_store: Blob store holding the files
            registry: Secure link registry
            config: Link lifetimes and base URL (default: from environment)
        """
        self.blob_store = blob_store
        self.registry = registry
        self.config = config or SecureLinkConfig()
        self._policies = {
            LinkClass.PRESIGNED: LinkPolicy(
                expires_in=timedelta(seconds=self.config.presigned_url_ttl_seconds)
            ),
            LinkClass.STANDARD: LinkPolicy(expires_in=self.config.secure_url_expiry),
            LinkClass.TRACKED: LinkPolicy(
                expires_in=self.config.secure_url_expiry,
                max_accesses=self.config.tracked_url_max_accesses,
            ),
            LinkClass.TEMPORARY: LinkPolicy(
                expires_in=self.config.temporary_url_expiry, max_accesses=1
            ),
        }

    def policy_for(self, link_class: LinkClass) -> LinkPolicy:
        """Lifetime and access cap of a link class."""
        return self._policies[link_class]

    def get_file_url(
        self, file: StoredFileRef, link_class: LinkClass = LinkClass.STANDARD
    ) -> str:
        """
        Produce the URL a client should use for a file.

        Args:
            file: Bucket, key and visibility of the file
            link_class: How private files are exposed

        Returns:
            Direct URL for public files, presigned URL or secure link otherwise

        Raises:
            FailedToGenerateUrlError: If no URL could be produced
        """
        try:
            if file.visibility is Visibility.PUBLIC:
                return self.blob_store.public_url(file.bucket_name, file.object_key)

            policy = self.policy_for(link_class)
            presigned = self.blob_store.presigned_get(
                file.bucket_name,
                file.object_key,
                ttl_seconds=self.config.presigned_url_ttl_seconds,
            )
            if link_class is LinkClass.PRESIGNED:
                return presigned

            path = self.registry.issue(
                file.bucket_name,
                file.object_key,
                presigned,
                expires_in=policy.expires_in,
                max_accesses=policy.max_accesses,
            )
            return f"{self.config.base_url}{path}"
        except (ObjectNotFoundError, StorageUnavailableError, ValueError, RuntimeError) as e:
            logger.error(
                f"Failed to generate {link_class.value} URL for "
                f"{file.bucket_name}/{file.object_key}: {e}"
            )
            raise FailedToGenerateUrlError(
                f"Could not generate URL for {file.bucket_name}/{file.object_key}", e
            ) from e

    def open_secure_link(
        self, secure_id: str, timestamp: str, hash: str
    ) -> Optional[SecureDownload]:
        """
        Resolve a secure link and open the backing object.

        Returns:
            SecureDownload with an open stream, or None if the link does not
            resolve or the object is gone

        Raises:
            StorageUnavailableError: If the blob store could not be reached
        """
        return self._resolve_download(secure_id, timestamp, hash, open_stream=True)

    def inspect_secure_link(
        self, secure_id: str, timestamp: str, hash: str
    ) -> Optional[SecureDownload]:
        """HEAD variant of open_secure_link; counts as an access, opens no stream."""
        return self._resolve_download(secure_id, timestamp, hash, open_stream=False)

    def _resolve_download(
        self, secure_id: str, timestamp: str, hash: str, open_stream: bool
    ) -> Optional[SecureDownload]:
        result = self.registry.resolve(secure_id, timestamp, hash)
        if not result.is_resolved:
            return None

        location = result.location
        try:
            stat = self.blob_store.stat(location.bucket_name, location.object_key)
            stream = (
                self.blob_store.get_stream(location.bucket_name, location.object_key)
                if open_stream
                else None
            )
        except ObjectNotFoundError:
            logger.warning(
                f"Secure link resolved but object is gone: "
                f"{location.bucket_name}/{location.object_key}"
            )
            return None

        return SecureDownload(location=location, stat=stat, stream=stream)
