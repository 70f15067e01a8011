"""
Test fixtures package.

Provides factory functions and mock implementations for testing.
"""

from .domain_fixtures import (
    DEFAULT_NOW,
    PRIVATE_BUCKET,
    SAMPLE_KEY,
    SAMPLE_URL,
    FakeClock,
    create_mapping,
    create_object_stat,
    create_stored_file,
)
from .mock_repositories import MockBlobStore, RecordingEventPublisher

__all__ = [
    "DEFAULT_NOW",
    "PRIVATE_BUCKET",
    "SAMPLE_KEY",
    "SAMPLE_URL",
    "FakeClock",
    "create_mapping",
    "create_object_stat",
    "create_stored_file",
    "MockBlobStore",
    "RecordingEventPublisher",
]
