"""
Logging Event Handler

Infrastructure event handler for logging domain events.
Subscribes to domain events and logs them appropriately.
Domain layer remains unaware of logging infrastructure.
"""

import logging

from securelink.domain.events import (
    DomainEvent,
    SecureLinkInvalidatedEvent,
    SecureLinkIssuedEvent,
    SecureLinkRejectedEvent,
    SecureLinkResolvedEvent,
    SecureLinksSweptEvent,
)

HANDLED_EVENTS = (
    SecureLinkIssuedEvent,
    SecureLinkResolvedEvent,
    SecureLinkRejectedEvent,
    SecureLinkInvalidatedEvent,
    SecureLinksSweptEvent,
)


def short_id(secure_id: str) -> str:
    """Truncate a secure id so full ids never land in log files."""
    return f"{secure_id[:6]}..." if len(secure_id) > 6 else secure_id


class LoggingEventHandler:
    """
    Infrastructure event handler for logging domain events.

    Secure ids are truncated and original URLs are never logged; bucket and
    key are fine for operational diagnosis.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize with logger instance.

        Args:
            logger: Python logging.Logger instance
        """
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event by logging it.

        Args:
            event: Domain event to log
        """
        try:
            if isinstance(event, SecureLinkIssuedEvent):
                self._handle_issued(event)
            elif isinstance(event, SecureLinkResolvedEvent):
                self._handle_resolved(event)
            elif isinstance(event, SecureLinkRejectedEvent):
                self._handle_rejected(event)
            elif isinstance(event, SecureLinkInvalidatedEvent):
                self._handle_invalidated(event)
            elif isinstance(event, SecureLinksSweptEvent):
                self._handle_swept(event)
            else:
                self.logger.debug(
                    f"Unhandled event: {event.__class__.__name__} "
                    f"(aggregate_id={short_id(event.aggregate_id)})"
                )
        except Exception as e:
            self.logger.error(
                f"Error in logging event handler for {event.__class__.__name__}: {e}",
                exc_info=True,
            )

    def _handle_issued(self, event: SecureLinkIssuedEvent) -> None:
        """Log link issuance."""
        expires = event.expires_at.isoformat() if event.expires_at else "never"
        self.logger.info(
            f"Secure link issued: id={short_id(event.aggregate_id)}, "
            f"object={event.bucket_name}/{event.object_key}, "
            f"expires_at={expires}, max_accesses={event.max_accesses}"
        )

    def _handle_resolved(self, event: SecureLinkResolvedEvent) -> None:
        """Log successful resolution."""
        self.logger.debug(
            f"Secure link resolved: id={short_id(event.aggregate_id)}, "
            f"access {event.access_count}/{event.max_accesses or 'unlimited'}"
        )

    def _handle_rejected(self, event: SecureLinkRejectedEvent) -> None:
        """Log rejected resolution."""
        self.logger.info(
            f"Secure link rejected: id={short_id(event.aggregate_id)}, reason={event.reason}"
        )

    def _handle_invalidated(self, event: SecureLinkInvalidatedEvent) -> None:
        """Log explicit invalidation."""
        self.logger.info(
            f"Secure link invalidated: id={short_id(event.aggregate_id)}, existed={event.existed}"
        )

    def _handle_swept(self, event: SecureLinksSweptEvent) -> None:
        """Log sweep summary."""
        if event.removed_count:
            self.logger.info(f"Secure link sweep removed {event.removed_count} mapping(s)")
        else:
            self.logger.debug("Secure link sweep removed nothing")
