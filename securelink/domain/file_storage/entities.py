"""
File Storage Entities

Domain entities for uploaded file records.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import secrets
import string

from .value_objects import StoredFileRef, Visibility

# Same alphabet nanoid uses; keeps generated names URL-safe
URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"


def generate_random_id(length: int = 21) -> str:
    """
    Generate a cryptographically random URL-safe identifier.

    Args:
        length: Number of characters (default: 21)

    Returns:
        Random string drawn from A-Za-z0-9_-
    """
    return "".join(secrets.choice(URL_SAFE_ALPHABET) for _ in range(length))


@dataclass
class StoredFile:
    """
    Entity representing a file uploaded to the blob store.

    The record is returned to the UI after upload; persisting it is the job
    of whatever database sits in front of this service.
    """
    id: str
    original_name: str
    file_name: str
    mime_type: str
    size: int
    bucket_name: str
    object_key: str
    visibility: Visibility
    created_at: datetime
    folder: Optional[str] = None
    url: Optional[str] = None

    @staticmethod
    def build_file_name(original_name: str, file_name: Optional[str] = None) -> str:
        """
        Pick the stored file name: the explicit one, or a random id keeping
        the original extension.
        """
        if file_name:
            return file_name
        extension = original_name.rsplit(".", 1)[-1] if "." in original_name else ""
        random_part = generate_random_id()
        return f"{random_part}.{extension}" if extension else random_part

    @staticmethod
    def build_object_key(file_name: str, folder: Optional[str] = None) -> str:
        """Join the optional folder and the file name into an object key."""
        if folder:
            return f"{folder.strip('/')}/{file_name}"
        return file_name

    def ref(self) -> StoredFileRef:
        """Return the (bucket, key, visibility) identity of this file."""
        return StoredFileRef(self.bucket_name, self.object_key, self.visibility)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "original_name": self.original_name,
            "file_name": self.file_name,
            "mime_type": self.mime_type,
            "size": self.size,
            "bucket_name": self.bucket_name,
            "object_key": self.object_key,
            "visibility": self.visibility.value,
            "folder": self.folder,
            "url": self.url,
            "created_at": self.created_at.isoformat(),
        }
