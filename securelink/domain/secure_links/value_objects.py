"""
Secure Link Value Objects

Immutable value objects exchanged between the registry, its storage and
its callers.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .entities import SecureUrlMapping

SECURE_PATH_PREFIX = "/secure"


@dataclass(frozen=True)
class SecurePath:
    """
    The three path segments of a secure link.

    secure_id is the lookup key and the unguessable part; timestamp and
    hash only bind the path to the backing object.
    """
    secure_id: str
    timestamp: str
    hash: str

    def to_path(self) -> str:
        """Render as /secure/{secure_id}/{timestamp}/{hash}."""
        return f"{SECURE_PATH_PREFIX}/{self.secure_id}/{self.timestamp}/{self.hash}"

    def __str__(self) -> str:
        return self.to_path()


@dataclass(frozen=True)
class ResolvedLocation:
    """Backing location returned by a successful resolution."""
    bucket_name: str
    object_key: str
    original_url: str


class ResolutionFailure(Enum):
    """
    Internal reason a resolution failed.

    All values collapse to the same not-found answer at the public boundary.
    """

    INVALID_PATH = "invalid_path"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of SecureUrlRegistry.resolve(): resolved or not found."""
    location: Optional[ResolvedLocation] = None
    failure: Optional[ResolutionFailure] = None

    @property
    def is_resolved(self) -> bool:
        return self.location is not None

    @classmethod
    def resolved(cls, location: ResolvedLocation) -> "ResolutionResult":
        return cls(location=location)

    @classmethod
    def not_found(cls, failure: ResolutionFailure) -> "ResolutionResult":
        return cls(failure=failure)


class ConsumeOutcome(Enum):
    """Result of the repository's atomic check-and-increment."""

    CONSUMED = "consumed"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ConsumeResult:
    """
    Outcome of SecureUrlMappingRepository.try_consume().

    mapping holds the post-increment snapshot when the outcome is CONSUMED.
    """
    outcome: ConsumeOutcome
    mapping: Optional["SecureUrlMapping"] = None

    @property
    def consumed(self) -> bool:
        return self.outcome is ConsumeOutcome.CONSUMED


@dataclass(frozen=True)
class MappingStats:
    """Usage snapshot of one mapping."""
    access_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    max_accesses: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "access_count": self.access_count,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "max_accesses": self.max_accesses,
        }


@dataclass(frozen=True)
class MappingSummary:
    """
    One entry of SecureUrlRegistry.list_active().

    Entries may already be expired but not yet swept; expires_at is
    authoritative over presence in the listing.
    """
    id: str
    bucket_name: str
    object_key: str
    access_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    max_accesses: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "bucket_name": self.bucket_name,
            "object_key": self.object_key,
            "access_count": self.access_count,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "max_accesses": self.max_accesses,
        }


class LinkClass(Enum):
    """Kind of link the file access layer hands out for a private file."""

    PRESIGNED = "presigned"
    STANDARD = "standard"
    TRACKED = "tracked"
    TEMPORARY = "temporary"

    @classmethod
    def from_string(cls, value: str) -> "LinkClass":
        """
        Parse a link class name.

        Raises:
            ValueError: If the name is unknown
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid link class: {value!r}") from None
