"""
Secure Link Entities

Domain entity for one issued secure link and its expiry/access state.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from .value_objects import MappingStats, MappingSummary


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class SecureUrlMapping:
    """
    Entity mapping an opaque secure id to a stored object.

    A mapping is live while it has not expired and has accesses left.
    Only the registry's repository mutates access_count, and only upward.
    """
    id: str
    original_url: str
    bucket_name: str
    object_key: str
    created_at: datetime
    secure_path: str = ""
    expires_at: Optional[datetime] = None
    max_accesses: Optional[int] = None
    access_count: int = 0

    def __post_init__(self):
        if self.max_accesses is not None and self.max_accesses < 1:
            raise ValueError(
                f"max_accesses must be a positive integer, got {self.max_accesses}"
            )
        if self.access_count < 0:
            raise ValueError("access_count cannot be negative")

    @classmethod
    def create(
        cls,
        secure_id: str,
        bucket_name: str,
        object_key: str,
        original_url: str,
        secure_path: str = "",
        expires_in: Optional[timedelta] = None,
        max_accesses: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> "SecureUrlMapping":
        """
        Factory method to create a new, never-accessed mapping.

        Args:
            secure_id: Generated 16 character id (lookup key)
            bucket_name: Bucket of the backing object
            object_key: Key of the backing object
            original_url: Pre-resolved target URL handed back on resolution
            secure_path: Path returned to the caller at issuance
            expires_in: Lifetime; None means no time limit
            max_accesses: Resolution cap; None means unlimited
            now: Issuance time (default: current UTC time)

        Returns:
            New SecureUrlMapping instance

        Raises:
            ValueError: If expires_in is not positive or max_accesses < 1
        """
        if expires_in is not None and expires_in <= timedelta(0):
            raise ValueError("expires_in must be a positive duration")

        created_at = now or utc_now()
        expires_at = created_at + expires_in if expires_in is not None else None

        return cls(
            id=secure_id,
            original_url=original_url,
            bucket_name=bucket_name,
            object_key=object_key,
            created_at=created_at,
            secure_path=secure_path,
            expires_at=expires_at,
            max_accesses=max_accesses,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once expires_at is reached; never for mappings without expiry."""
        if self.expires_at is None:
            return False
        return (now or utc_now()) >= self.expires_at

    def is_exhausted(self) -> bool:
        """True once every allowed access has been used."""
        return self.max_accesses is not None and self.access_count >= self.max_accesses

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """A mapping can still be resolved only while it is live."""
        return not self.is_expired(now) and not self.is_exhausted()

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> Optional[int]:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 if expired), None if the mapping never expires
        """
        if self.expires_at is None:
            return None
        remaining = self.expires_at - (now or utc_now())
        return max(0, int(remaining.total_seconds()))

    def copy(self) -> "SecureUrlMapping":
        """Detached snapshot; callers never hold the stored instance."""
        return replace(self)

    def to_stats(self) -> MappingStats:
        """Read-only usage snapshot."""
        return MappingStats(
            access_count=self.access_count,
            created_at=self.created_at,
            expires_at=self.expires_at,
            max_accesses=self.max_accesses,
        )

    def to_summary(self) -> MappingSummary:
        """Listing entry; leaves out the original URL."""
        return MappingSummary(
            id=self.id,
            bucket_name=self.bucket_name,
            object_key=self.object_key,
            access_count=self.access_count,
            created_at=self.created_at,
            expires_at=self.expires_at,
            max_accesses=self.max_accesses,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "original_url": self.original_url,
            "bucket_name": self.bucket_name,
            "object_key": self.object_key,
            "secure_path": self.secure_path,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "max_accesses": self.max_accesses,
            "access_count": self.access_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SecureUrlMapping":
        """Create SecureUrlMapping from dictionary."""
        expires_at = data.get("expires_at")
        return cls(
            id=data["id"],
            original_url=data["original_url"],
            bucket_name=data["bucket_name"],
            object_key=data["object_key"],
            secure_path=data.get("secure_path", ""),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            max_accesses=data.get("max_accesses"),
            access_count=int(data.get("access_count", 0)),
        )
