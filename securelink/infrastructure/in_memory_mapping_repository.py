"""
In-Memory Secure Link Repository

Process-local implementation of SecureUrlMappingRepository. Mappings live in
a dict and are lost on restart; every process has its own view.
"""

import threading
from datetime import datetime
from typing import Dict, Iterator, Optional

from securelink.domain.secure_links.entities import SecureUrlMapping
from securelink.domain.secure_links.repositories import SecureUrlMappingRepository
from securelink.domain.secure_links.value_objects import ConsumeOutcome, ConsumeResult


class InMemorySecureUrlMappingRepository(SecureUrlMappingRepository):
    """
    Dict-backed mapping store guarded by a single lock.

    Thread Safety:
        Every operation runs under the same lock, so try_consume's
        check-and-increment is atomic and the sweep never interleaves with
        it. Callers only ever receive copies of stored mappings.
    """

    def __init__(self):
        self._mappings: Dict[str, SecureUrlMapping] = {}
        self._lock = threading.Lock()

    def insert(self, mapping: SecureUrlMapping) -> bool:
        with self._lock:
            if mapping.id in self._mappings:
                return False
            self._mappings[mapping.id] = mapping.copy()
            return True

    def get(self, secure_id: str) -> Optional[SecureUrlMapping]:
        with self._lock:
            mapping = self._mappings.get(secure_id)
            return mapping.copy() if mapping else None

    def try_consume(self, secure_id: str, now: datetime) -> ConsumeResult:
        with self._lock:
            mapping = self._mappings.get(secure_id)
            if mapping is None:
                return ConsumeResult(ConsumeOutcome.NOT_FOUND)

            if mapping.is_expired(now):
                del self._mappings[secure_id]
                return ConsumeResult(ConsumeOutcome.EXPIRED)

            if mapping.is_exhausted():
                del self._mappings[secure_id]
                return ConsumeResult(ConsumeOutcome.EXHAUSTED)

            mapping.access_count += 1
            return ConsumeResult(ConsumeOutcome.CONSUMED, mapping.copy())

    def delete(self, secure_id: str) -> bool:
        with self._lock:
            return self._mappings.pop(secure_id, None) is not None

    def delete_non_live(self, now: datetime) -> int:
        with self._lock:
            stale = [
                secure_id
                for secure_id, mapping in self._mappings.items()
                if not mapping.is_live(now)
            ]
            for secure_id in stale:
                del self._mappings[secure_id]
            return len(stale)

    def iter_all(self) -> Iterator[SecureUrlMapping]:
        # Snapshot under the lock, then yield lazily without holding it
        with self._lock:
            snapshot = [mapping.copy() for mapping in self._mappings.values()]
        return iter(snapshot)

    def count(self) -> int:
        with self._lock:
            return len(self._mappings)

    def clear(self) -> None:
        """Drop every mapping."""
        with self._lock:
            self._mappings.clear()
