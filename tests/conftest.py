"""
Shared pytest fixtures and configuration for the SecureLink test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Shared fixtures for the secure link registry and its collaborators
- Blob store fixtures (in-memory mock and local filesystem)
"""

import pytest
from unittest.mock import Mock

# Hypothesis configuration
from hypothesis import settings, HealthCheck, Phase

from securelink.domain.file_storage import SignedUrlService
from securelink.domain.secure_links import SecureUrlRegistry
from securelink.infrastructure.in_memory_mapping_repository import (
    InMemorySecureUrlMappingRepository,
)
from securelink.infrastructure.local_blob_store import LocalBlobStore
from tests.fixtures import (
    PRIVATE_BUCKET,
    SAMPLE_KEY,
    FakeClock,
    MockBlobStore,
    RecordingEventPublisher,
)

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")


# =============================================================================
# Secure Link Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """Provide a settable clock starting at 2025-01-31 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def blob_store() -> MockBlobStore:
    """Provide an in-memory blob store holding one private object."""
    store = MockBlobStore()
    store.add_object(
        PRIVATE_BUCKET,
        SAMPLE_KEY,
        data=b"hello world",
        metadata={"original-name": "report.pdf"},
    )
    return store


@pytest.fixture
def mapping_repository() -> InMemorySecureUrlMappingRepository:
    """Provide an empty in-memory mapping repository."""
    return InMemorySecureUrlMappingRepository()


@pytest.fixture
def event_recorder() -> RecordingEventPublisher:
    """Provide a publisher that only records events."""
    return RecordingEventPublisher()


@pytest.fixture
def registry(mapping_repository, blob_store, event_recorder, clock):
    """
    Provide a SecureUrlRegistry over the in-memory repository.

    The background sweep is not started; tests call sweep() directly.
    """
    registry = SecureUrlRegistry(
        mapping_repository,
        blob_store,
        event_publisher=event_recorder,
        clock=clock,
    )
    yield registry
    registry.stop()


# =============================================================================
# Blob Store Fixtures
# =============================================================================

@pytest.fixture
def signer() -> SignedUrlService:
    """Provide a URL signer with a fixed key."""
    return SignedUrlService(secret_key="test-secret", base_url="/api/v1/storage")


@pytest.fixture
def local_blob_store(tmp_path, signer) -> LocalBlobStore:
    """Provide a LocalBlobStore rooted in a temporary directory."""
    return LocalBlobStore(str(tmp_path / "storage"), signer=signer)


@pytest.fixture
def mock_redis_repository():
    """
    Provide a mock RedisRepository.

    register_script returns a distinct Mock per script so tests can tell
    the consume script from the sweep script.
    """
    mock = Mock()
    mock.register_script.side_effect = lambda source: Mock(name="script", source=source)
    mock.set_json.return_value = True
    mock.get_json.return_value = None
    mock.delete.return_value = True
    mock.iter_keys_by_pattern.return_value = iter([])
    return mock


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
