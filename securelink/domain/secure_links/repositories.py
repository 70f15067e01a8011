"""
Secure Link Repositories

Storage interface for secure link mappings. The in-memory implementation
keeps mappings per process; the Redis implementation shares them between
every process that resolves links. Both live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterator, Optional

from .entities import SecureUrlMapping
from .value_objects import ConsumeResult


class SecureUrlMappingRepository(ABC):
    """Abstract repository interface for secure link mappings."""

    @abstractmethod
    def insert(self, mapping: SecureUrlMapping) -> bool:
        """
        Store a new mapping under its id.

        Args:
            mapping: Fully constructed mapping

        Returns:
            True if stored, False if the id is already taken
        """
        pass

    @abstractmethod
    def get(self, secure_id: str) -> Optional[SecureUrlMapping]:
        """
        Fetch a snapshot of a mapping without touching its counters.

        Returns:
            Detached copy of the mapping, or None if absent
        """
        pass

    @abstractmethod
    def try_consume(self, secure_id: str, now: datetime) -> ConsumeResult:
        """
        Atomically check liveness and count one access.

        Within a single atomic step per id: an expired or exhausted mapping
        is deleted and reported as EXPIRED/EXHAUSTED, a live mapping has its
        access_count incremented and is reported as CONSUMED with the
        post-increment snapshot. Two concurrent calls on a mapping with one
        access left never both return CONSUMED.

        Args:
            secure_id: Mapping id
            now: Time used for the expiry check

        Returns:
            ConsumeResult
        """
        pass

    @abstractmethod
    def delete(self, secure_id: str) -> bool:
        """
        Remove a mapping.

        Returns:
            True if it existed, False otherwise
        """
        pass

    @abstractmethod
    def delete_non_live(self, now: datetime) -> int:
        """
        Remove every expired or exhausted mapping.

        Returns:
            Number of mappings removed
        """
        pass

    @abstractmethod
    def iter_all(self) -> Iterator[SecureUrlMapping]:
        """
        Iterate over snapshots of all stored mappings, live or not yet swept.

        Each call starts a new iteration.
        """
        pass

    def count(self) -> int:
        """Number of stored mappings."""
        return sum(1 for _ in self.iter_all())
