"""
Unit tests for FileAccessService.

Covers link class selection, URL generation failures and secure link
downloads over an in-memory blob store.
"""

from datetime import timedelta

import pytest

from securelink.application.file_access_service import (
    SECURITY_HEADERS,
    FileAccessService,
    LinkPolicy,
    SecureDownload,
    content_disposition,
)
from securelink.config.link_config import SecureLinkConfig
from securelink.domain.errors import (
    FailedToGenerateUrlError,
    ObjectNotFoundError,
    StorageUnavailableError,
)
from securelink.domain.file_storage import StoredFileRef, Visibility
from securelink.domain.secure_links import LinkClass, SecurePathCodec
from tests.fixtures import PRIVATE_BUCKET, SAMPLE_KEY, create_object_stat

BASE_URL = "https://files.example/api/v1"


@pytest.fixture
def link_config():
    config = SecureLinkConfig()
    config.base_url = BASE_URL
    config.secure_url_expiry_hours = 24
    config.temporary_url_expiry_minutes = 15
    config.tracked_url_max_accesses = 10
    config.presigned_url_ttl_seconds = 3600
    return config


@pytest.fixture
def access_service(blob_store, registry, link_config):
    return FileAccessService(blob_store, registry, link_config)


PRIVATE_FILE = StoredFileRef(PRIVATE_BUCKET, SAMPLE_KEY, Visibility.PRIVATE)


def _segments(url):
    assert url.startswith(f"{BASE_URL}/secure/")
    return SecurePathCodec.parse_path(url)


# =============================================================================
# Link classes
# =============================================================================

def test_public_file_gets_direct_url(access_service, blob_store, registry):
    blob_store.add_object("public", "logo.png", content_type="image/png")
    ref = StoredFileRef("public", "logo.png", Visibility.PUBLIC)

    url = access_service.get_file_url(ref, LinkClass.TEMPORARY)

    assert url == "https://blobs.example/public/logo.png"
    assert list(registry.list_active()) == []


def test_presigned_class_returns_native_url(access_service, blob_store, registry):
    url = access_service.get_file_url(PRIVATE_FILE, LinkClass.PRESIGNED)

    assert "X-Signature" in url
    assert blob_store.calls_to("presigned_get")[0]["ttl_seconds"] == 3600
    assert list(registry.list_active()) == []


def test_standard_link_expires_in_24_hours(access_service, registry, clock):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE))

    stats = registry.stats(segments.secure_id)
    assert stats.expires_at == clock() + timedelta(hours=24)
    assert stats.max_accesses is None


def test_tracked_link_allows_ten_accesses(access_service, registry):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE, LinkClass.TRACKED))

    assert registry.stats(segments.secure_id).max_accesses == 10


def test_temporary_link_is_single_use_for_15_minutes(access_service, registry, clock):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE, LinkClass.TEMPORARY))

    stats = registry.stats(segments.secure_id)
    assert stats.max_accesses == 1
    assert stats.expires_at == clock() + timedelta(minutes=15)


def test_secure_link_resolves_to_presigned_url(access_service, registry):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE))

    result = registry.resolve(segments.secure_id, segments.timestamp, segments.hash)

    assert result.location.original_url.startswith("https://blobs.example/private/")


def test_policy_for(access_service):
    assert access_service.policy_for(LinkClass.TEMPORARY) == LinkPolicy(
        expires_in=timedelta(minutes=15), max_accesses=1
    )
    assert access_service.policy_for(LinkClass.PRESIGNED).expires_in_seconds == 3600
    assert access_service.policy_for(LinkClass.STANDARD).expires_in_seconds == 86400


# =============================================================================
# Failures
# =============================================================================

def test_missing_file_fails_with_original_error(access_service):
    ref = StoredFileRef(PRIVATE_BUCKET, "missing.pdf", Visibility.PRIVATE)

    with pytest.raises(FailedToGenerateUrlError) as exc_info:
        access_service.get_file_url(ref)

    assert isinstance(exc_info.value.original_error, ObjectNotFoundError)


def test_storage_outage_fails_with_original_error(access_service, blob_store):
    blob_store.unavailable = True

    with pytest.raises(FailedToGenerateUrlError) as exc_info:
        access_service.get_file_url(PRIVATE_FILE)

    assert isinstance(exc_info.value.original_error, StorageUnavailableError)


# =============================================================================
# Secure link downloads
# =============================================================================

def test_open_secure_link_streams_object(access_service):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE))

    download = access_service.open_secure_link(
        segments.secure_id, segments.timestamp, segments.hash
    )

    try:
        assert download.stream.read() == b"hello world"
    finally:
        download.stream.close()
    headers = download.headers()
    assert headers["Content-Type"] == "application/pdf"
    assert headers["Content-Length"] == "11"
    assert headers["Content-Disposition"] == 'inline; filename="report.pdf"'
    assert headers["Cache-Control"] == "private, max-age=3600"
    for name, value in SECURITY_HEADERS.items():
        assert headers[name] == value


def test_inspect_secure_link_counts_access_without_stream(access_service, registry):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE, LinkClass.TEMPORARY))

    download = access_service.inspect_secure_link(
        segments.secure_id, segments.timestamp, segments.hash
    )

    assert download.stream is None
    assert download.stat.size == 11
    assert registry.stats(segments.secure_id).access_count == 1
    assert access_service.open_secure_link(
        segments.secure_id, segments.timestamp, segments.hash
    ) is None


def test_invalid_link_returns_none(access_service):
    assert access_service.open_secure_link("NoSuchSecureId00", "k1", "abcd1234") is None


def test_deleted_object_returns_none(access_service, blob_store):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE))
    blob_store.delete(PRIVATE_BUCKET, SAMPLE_KEY)

    assert access_service.open_secure_link(
        segments.secure_id, segments.timestamp, segments.hash
    ) is None


def test_storage_outage_during_download_propagates(access_service, blob_store):
    segments = _segments(access_service.get_file_url(PRIVATE_FILE))
    blob_store.unavailable = True

    with pytest.raises(StorageUnavailableError):
        access_service.open_secure_link(segments.secure_id, segments.timestamp, segments.hash)


# =============================================================================
# Headers
# =============================================================================

def test_content_disposition_ascii():
    assert content_disposition('my "report".pdf') == 'inline; filename="my \\"report\\".pdf"'


def test_content_disposition_non_ascii():
    value = content_disposition("résumé.pdf")

    assert value.startswith('inline; filename="r_sum_.pdf"')
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in value
    value.encode("latin-1")


def test_content_disposition_fallback_keeps_question_marks():
    value = content_disposition("¿qué?.pdf")

    assert value.startswith('inline; filename="_qu_?.pdf"')
    assert "filename*=UTF-8''%C2%BFqu%C3%A9%3F.pdf" in value


def test_download_without_original_name_has_no_disposition():
    download = SecureDownload(location=None, stat=create_object_stat(original_name=None))

    assert "Content-Disposition" not in download.headers()
