"""
Unit tests for EventPublisher.
"""

from unittest.mock import Mock

from securelink.application.event_publisher import EventPublisher
from securelink.domain.events import SecureLinkInvalidatedEvent, SecureLinksSweptEvent
from tests.fixtures import DEFAULT_NOW


def _invalidated():
    return SecureLinkInvalidatedEvent(aggregate_id="abc", occurred_at=DEFAULT_NOW, existed=True)


def test_publish_dispatches_by_event_type():
    publisher = EventPublisher()
    invalidated_handler = Mock()
    swept_handler = Mock()
    publisher.subscribe(SecureLinkInvalidatedEvent, invalidated_handler)
    publisher.subscribe(SecureLinksSweptEvent, swept_handler)

    event = _invalidated()
    publisher.publish(event)

    invalidated_handler.assert_called_once_with(event)
    swept_handler.assert_not_called()


def test_subscribe_many():
    publisher = EventPublisher()
    handler = Mock()
    publisher.subscribe_many([SecureLinkInvalidatedEvent, SecureLinksSweptEvent], handler)

    publisher.publish(_invalidated())
    publisher.publish(SecureLinksSweptEvent(aggregate_id="registry", occurred_at=DEFAULT_NOW, removed_count=0))

    assert handler.call_count == 2


def test_failing_handler_does_not_stop_others():
    publisher = EventPublisher()
    failing = Mock(side_effect=RuntimeError("handler bug"))
    healthy = Mock()
    publisher.subscribe(SecureLinkInvalidatedEvent, failing)
    publisher.subscribe(SecureLinkInvalidatedEvent, healthy)

    publisher.publish(_invalidated())

    healthy.assert_called_once()


def test_publish_without_handlers_and_clear():
    publisher = EventPublisher()
    handler = Mock()
    publisher.publish(_invalidated())

    publisher.subscribe(SecureLinkInvalidatedEvent, handler)
    publisher.clear()
    publisher.publish(_invalidated())

    handler.assert_not_called()


def test_event_to_dict():
    data = _invalidated().to_dict()

    assert data == {
        "event_type": "SecureLinkInvalidatedEvent",
        "aggregate_id": "abc",
        "occurred_at": DEFAULT_NOW.isoformat(),
        "existed": True,
    }
