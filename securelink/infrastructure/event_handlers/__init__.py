"""Event handlers that turn domain events into side effects."""

from .logging_handler import HANDLED_EVENTS, LoggingEventHandler, short_id

__all__ = [
    "HANDLED_EVENTS",
    "LoggingEventHandler",
    "short_id",
]
