"""
Secure Link Services

Domain service that issues and resolves secure links.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional

from securelink.domain.errors import ObjectNotFoundError, StorageUnavailableError
from securelink.domain.events import (
    DomainEvent,
    SecureLinkInvalidatedEvent,
    SecureLinkIssuedEvent,
    SecureLinkRejectedEvent,
    SecureLinkResolvedEvent,
    SecureLinksSweptEvent,
)
from securelink.domain.file_storage.blob_store import IBlobStore

from .codec import SecurePathCodec
from .entities import SecureUrlMapping, utc_now
from .repositories import SecureUrlMappingRepository
from .sweeper import PeriodicSweeper
from .value_objects import (
    ConsumeOutcome,
    MappingStats,
    MappingSummary,
    ResolutionFailure,
    ResolutionResult,
    ResolvedLocation,
)

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60
MAX_ID_ATTEMPTS = 5

_FAILURE_BY_OUTCOME = {
    ConsumeOutcome.NOT_FOUND: ResolutionFailure.INVALID_PATH,
    ConsumeOutcome.EXPIRED: ResolutionFailure.EXPIRED,
    ConsumeOutcome.EXHAUSTED: ResolutionFailure.EXHAUSTED,
}


class SecureUrlRegistry:
    """
    Domain service owning the set of secure link mappings.

    Issues mappings for existing objects, resolves presented paths with
    expiry and access-count enforcement, and runs an owned background sweep
    that removes mappings which are no longer live. Expiry and exhaustion
    are enforced lazily inside resolve(); the sweep only bounds growth.
    """

    def __init__(
        self,
        repository: SecureUrlMappingRepository,
        blob_store: IBlobStore,
        codec: Optional[SecurePathCodec] = None,
        event_publisher=None,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the registry.

        Args:
            repository: Mapping storage (in-memory or shared)
            blob_store: Blob store used to verify objects exist at issuance
            codec: Path codec (default: SecurePathCodec())
            event_publisher: Optional object with publish(event)
            sweep_interval_seconds: Period of the background sweep
            clock: Source of the current time
        """
        self.repository = repository
        self.blob_store = blob_store
        self.codec = codec or SecurePathCodec()
        self.event_publisher = event_publisher
        self.clock = clock
        self._sweeper = PeriodicSweeper(self.sweep, sweep_interval_seconds)

    # Lifecycle

    def start(self) -> "SecureUrlRegistry":
        """Start the background sweep."""
        self._sweeper.start()
        return self

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Stop the background sweep and wait for it to finish."""
        self._sweeper.stop(timeout)

    @property
    def is_sweeping(self) -> bool:
        return self._sweeper.is_running

    def __enter__(self) -> "SecureUrlRegistry":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # Operations

    def issue(
        self,
        bucket_name: str,
        object_key: str,
        original_url: str,
        expires_in: Optional[timedelta] = None,
        max_accesses: Optional[int] = None,
        custom_path: Optional[str] = None,
    ) -> str:
        """
        Mint a secure link for an existing object.

        Args:
            bucket_name: Bucket of the backing object
            object_key: Key of the backing object
            original_url: Pre-resolved direct or presigned URL
            expires_in: Lifetime; None means no time limit
            max_accesses: Resolution cap; None means unlimited
            custom_path: Path to return instead of the derived one; the
                mapping is still stored under the generated id

        Returns:
            The indirection path, /secure/{id}/{timestamp}/{hash} unless
            custom_path was given

        Raises:
            ObjectNotFoundError: If the object does not exist
            StorageUnavailableError: If the blob store could not be queried
            ValueError: If expires_in or max_accesses are not positive
        """
        self._verify_object_exists(bucket_name, object_key)

        for _ in range(MAX_ID_ATTEMPTS):
            now = self.clock()
            secure_path = self.codec.mint(bucket_name, object_key, now)
            path = custom_path or secure_path.to_path()
            mapping = SecureUrlMapping.create(
                secure_id=secure_path.secure_id,
                bucket_name=bucket_name,
                object_key=object_key,
                original_url=original_url,
                secure_path=path,
                expires_in=expires_in,
                max_accesses=max_accesses,
                now=now,
            )
            if self.repository.insert(mapping):
                self._publish(SecureLinkIssuedEvent(
                    aggregate_id=mapping.id,
                    occurred_at=now,
                    bucket_name=bucket_name,
                    object_key=object_key,
                    expires_at=mapping.expires_at,
                    max_accesses=max_accesses,
                ))
                return path
            logger.warning("Secure id collision, generating a new id")

        raise RuntimeError(f"Could not allocate a unique secure id after {MAX_ID_ATTEMPTS} attempts")

    def resolve(self, secure_id: str, timestamp: str, hash: str) -> ResolutionResult:
        """
        Validate a presented path and count one access.

        Unknown ids and hash mismatches, expired and exhausted mappings all
        return a not-found result; the failure reason is for logging only.

        Args:
            secure_id: First path segment
            timestamp: Second path segment
            hash: Third path segment

        Returns:
            ResolutionResult with the backing location on success
        """
        mapping = self.repository.get(secure_id) if secure_id else None
        if mapping is None or not self.codec.verify(mapping, timestamp, hash):
            return self._reject(secure_id or "", ResolutionFailure.INVALID_PATH)

        now = self.clock()
        result = self.repository.try_consume(secure_id, now)
        if not result.consumed:
            return self._reject(secure_id, _FAILURE_BY_OUTCOME[result.outcome])

        consumed = result.mapping
        self._publish(SecureLinkResolvedEvent(
            aggregate_id=secure_id,
            occurred_at=now,
            access_count=consumed.access_count,
            max_accesses=consumed.max_accesses,
        ))
        return ResolutionResult.resolved(ResolvedLocation(
            bucket_name=consumed.bucket_name,
            object_key=consumed.object_key,
            original_url=consumed.original_url,
        ))

    def invalidate(self, secure_id: str) -> bool:
        """
        Remove a mapping unconditionally.

        Returns:
            True if the mapping existed
        """
        existed = self.repository.delete(secure_id)
        self._publish(SecureLinkInvalidatedEvent(
            aggregate_id=secure_id, occurred_at=self.clock(), existed=existed
        ))
        return existed

    def stats(self, secure_id: str) -> Optional[MappingStats]:
        """Usage snapshot of a mapping; never changes it."""
        mapping = self.repository.get(secure_id)
        return mapping.to_stats() if mapping else None

    def list_active(self) -> Iterator[MappingSummary]:
        """
        Lazily list every stored mapping.

        Mappings that expired but were not swept yet may still appear.
        Calling again starts a fresh snapshot.
        """
        for mapping in self.repository.iter_all():
            yield mapping.to_summary()

    def sweep(self) -> int:
        """
        Remove every mapping that is no longer live.

        Returns:
            Number of mappings removed
        """
        now = self.clock()
        removed = self.repository.delete_non_live(now)
        self._publish(SecureLinksSweptEvent(
            aggregate_id="registry", occurred_at=now, removed_count=removed
        ))
        return removed

    # Helpers

    def _verify_object_exists(self, bucket_name: str, object_key: str) -> None:
        try:
            self.blob_store.stat(bucket_name, object_key)
        except (ObjectNotFoundError, StorageUnavailableError):
            raise
        except Exception as e:
            raise StorageUnavailableError(
                f"Blob store failed while checking {bucket_name}/{object_key}", e
            ) from e

    def _reject(self, secure_id: str, failure: ResolutionFailure) -> ResolutionResult:
        self._publish(SecureLinkRejectedEvent(
            aggregate_id=secure_id, occurred_at=self.clock(), reason=failure.value
        ))
        return ResolutionResult.not_found(failure)

    def _publish(self, event: DomainEvent) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
