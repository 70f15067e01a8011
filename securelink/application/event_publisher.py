"""
Event Publisher

Application service for publishing domain events to registered handlers.
Enables decoupling of side effects from core business logic.
"""

import logging
from threading import Lock
from typing import Callable, Dict, Iterable, List, Type

from securelink.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Event publisher that dispatches domain events to registered handlers.

    The EventPublisher maintains a registry of event types to handler functions
    and dispatches events synchronously to all registered handlers. Handler
    exceptions are caught and logged to prevent side effects from breaking
    core business logic.

    Thread-safe for concurrent event publishing.
    """

    def __init__(self):
        """Initialize EventPublisher with empty handler registry."""
        self._handlers: Dict[Type[DomainEvent], List[Callable[[DomainEvent], None]]] = {}
        self._lock = Lock()

    def subscribe(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: The type of domain event to handle
            handler: Callable that accepts the event as parameter

        Example:
            publisher = EventPublisher()
            publisher.subscribe(SecureLinkIssuedEvent, handle_issued)
        """
        with self._lock:
            if event_type not in self._handlers:
                self._handlers[event_type] = []

            self._handlers[event_type].append(handler)
            logger.debug(
                f"Registered handler {getattr(handler, '__name__', handler)} "
                f"for {event_type.__name__}"
            )

    def subscribe_many(
        self,
        event_types: Iterable[Type[DomainEvent]],
        handler: Callable[[DomainEvent], None]
    ) -> None:
        """Register one handler for several event types."""
        for event_type in event_types:
            self.subscribe(event_type, handler)

    def publish(self, event: DomainEvent) -> None:
        """
        Publish an event to all registered handlers.

        Dispatches the event synchronously to all handlers registered for
        the event's type. Handler exceptions are caught and logged to prevent
        side effects from breaking core business logic.

        Args:
            event: The domain event to publish
        """
        event_type = type(event)

        with self._lock:
            handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug(f"No handlers registered for {event_type.__name__}")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                # Side effects must not break the operation that raised the event
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} "
                    f"for {event_type.__name__}: {e}",
                    exc_info=True
                )

    def clear(self) -> None:
        """Remove all registered handlers."""
        with self._lock:
            self._handlers.clear()
