"""
Storage Configuration

Object storage settings read from the environment.
"""

import os
from typing import Optional, Tuple

DEFAULT_ALLOWED_CONTENT_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "text/csv",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/zip",
    "application/x-zip-compressed",
)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class StorageConfig:
    """Object storage configuration settings."""

    def __init__(self):
        self.backend = os.getenv("STORAGE_BACKEND", "local").strip().lower()

        # S3-compatible endpoint (MinIO)
        self.endpoint = os.getenv("STORAGE_ENDPOINT", "localhost")
        self.port = int(os.getenv("STORAGE_PORT", 9000))
        self.use_ssl = _env_bool("STORAGE_USE_SSL")
        self.access_key = os.getenv("STORAGE_ACCESS_KEY", "")
        self.secret_key = os.getenv("STORAGE_SECRET_KEY", "")
        self.region = os.getenv("STORAGE_REGION", "us-east-1")

        self.public_bucket = os.getenv("STORAGE_PUBLIC_BUCKET", "public")
        self.private_bucket = os.getenv("STORAGE_PRIVATE_BUCKET", "private")

        self.local_dir = os.getenv("LOCAL_STORAGE_DIR", "/tmp/securelink_storage")
        self.public_base_url = os.getenv("STORAGE_PUBLIC_BASE_URL") or None

        # Upload limits
        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_SIZE_MB", 100)) * 1024 * 1024
        allowed = os.getenv("ALLOWED_CONTENT_TYPES")
        self.allowed_content_types: Tuple[str, ...] = (
            tuple(t.strip() for t in allowed.split(",") if t.strip())
            if allowed
            else DEFAULT_ALLOWED_CONTENT_TYPES
        )

    @property
    def endpoint_url(self) -> Optional[str]:
        """URL of the S3-compatible endpoint, e.g. http://localhost:9000."""
        if not self.endpoint:
            return None
        protocol = "https" if self.use_ssl else "http"
        return f"{protocol}://{self.endpoint}:{self.port}"

    def bucket_for(self, visibility) -> str:
        """Bucket holding files of the given Visibility."""
        return self.public_bucket if visibility.value == "public" else self.private_bucket
