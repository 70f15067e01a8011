"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Visibility(Enum):
    """Declared visibility of a stored file; decides its bucket and link class."""

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def from_string(cls, value: str) -> "Visibility":
        """
        Parse a visibility string.

        Raises:
            ValueError: If the value is neither 'public' nor 'private'
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid visibility: {value!r}") from None


@dataclass(frozen=True)
class ObjectStat:
    """
    Metadata of a stored object as reported by the blob store.

    Metadata keys are lower-cased so 'Original-Name' and 'original-name'
    are the same entry regardless of the backend.
    """
    size: int
    content_type: str = "application/octet-stream"
    metadata: Dict[str, str] = field(default_factory=dict)
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None

    @property
    def original_name(self) -> Optional[str]:
        """Original upload filename, when the uploader recorded one."""
        return self.metadata.get("original-name")


@dataclass(frozen=True)
class StoredObject:
    """One entry of a bucket listing."""
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    is_folder: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "size": self.size,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
            "is_folder": self.is_folder,
        }


@dataclass(frozen=True)
class StoredFileRef:
    """Minimal identity of a stored file: where it lives and who may see it."""
    bucket_name: str
    object_key: str
    visibility: Visibility


@dataclass(frozen=True)
class BucketStats:
    """Usage summary of a bucket."""
    object_count: int
    total_size: int
    folders: tuple

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "object_count": self.object_count,
            "total_size": self.total_size,
            "folders": list(self.folders),
        }
