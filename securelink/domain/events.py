"""
Domain Events

Immutable records of significant state changes in the domain.
Events decouple side effects (logging, metrics) from core business logic.
"""

from abc import ABC
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: ID of the aggregate that generated the event (e.g., secure id)
        occurred_at: Timestamp when the event occurred
    """
    aggregate_id: str
    occurred_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        return {
            "event_type": self.__class__.__name__,
            "aggregate_id": self.aggregate_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class SecureLinkIssuedEvent(DomainEvent):
    """
    Event emitted when a secure link mapping is created.

    Attributes:
        bucket_name: Bucket of the backing object
        object_key: Key of the backing object
        expires_at: Absolute expiry, None for no time limit
        max_accesses: Access cap, None for unlimited
    """
    bucket_name: str
    object_key: str
    expires_at: Optional[datetime] = None
    max_accesses: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "bucket_name": self.bucket_name,
            "object_key": self.object_key,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "max_accesses": self.max_accesses,
        })
        return base_dict


@dataclass(frozen=True)
class SecureLinkResolvedEvent(DomainEvent):
    """Event emitted on every successful resolution."""
    access_count: int
    max_accesses: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict.update({
            "access_count": self.access_count,
            "max_accesses": self.max_accesses,
        })
        return base_dict


@dataclass(frozen=True)
class SecureLinkRejectedEvent(DomainEvent):
    """
    Event emitted when a resolution attempt fails.

    The reason is internal only and must never reach the HTTP response.
    """
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["reason"] = self.reason
        return base_dict


@dataclass(frozen=True)
class SecureLinkInvalidatedEvent(DomainEvent):
    """Event emitted when a mapping is removed on request."""
    existed: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["existed"] = self.existed
        return base_dict


@dataclass(frozen=True)
class SecureLinksSweptEvent(DomainEvent):
    """Event emitted after a sweep; aggregate_id is always "registry"."""
    removed_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization."""
        base_dict = super().to_dict()
        base_dict["removed_count"] = self.removed_count
        return base_dict
