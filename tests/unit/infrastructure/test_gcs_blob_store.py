"""
Unit tests for GCSBlobStore with a mocked storage client.
"""

import io
from datetime import timedelta
from unittest.mock import MagicMock, Mock

import pytest
from google.api_core.exceptions import NotFound, ServiceUnavailable

from securelink.domain.errors import ObjectNotFoundError, StorageUnavailableError
from securelink.infrastructure.gcs_blob_store import GCSBlobStore


@pytest.fixture
def gcs_client():
    return MagicMock()


@pytest.fixture
def store(gcs_client):
    return GCSBlobStore(client=gcs_client)


def _blob(**attrs):
    blob = Mock()
    blob.size = attrs.get("size", 11)
    blob.content_type = attrs.get("content_type", "application/pdf")
    blob.metadata = attrs.get("metadata", {"Original-Name": "report.pdf"})
    blob.etag = "etag-1"
    blob.updated = None
    blob.name = attrs.get("name", "a.pdf")
    return blob


def test_stat_reads_blob_metadata(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.return_value = _blob()

    stat = store.stat("private", "a.pdf")

    gcs_client.bucket.assert_called_with("private")
    gcs_client.bucket.return_value.get_blob.assert_called_with("a.pdf")
    assert stat.size == 11
    assert stat.content_type == "application/pdf"
    assert stat.original_name == "report.pdf"


def test_stat_missing_object(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.return_value = None

    with pytest.raises(ObjectNotFoundError):
        store.stat("private", "a.pdf")


def test_stat_missing_bucket(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.side_effect = NotFound("no bucket")

    with pytest.raises(ObjectNotFoundError):
        store.stat("private", "a.pdf")


def test_stat_outage(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.side_effect = ServiceUnavailable("503")

    with pytest.raises(StorageUnavailableError):
        store.stat("private", "a.pdf")


def test_stat_transport_error(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.side_effect = ConnectionError("reset")

    with pytest.raises(StorageUnavailableError):
        store.stat("private", "a.pdf")


def test_get_stream_opens_blob(store, gcs_client):
    blob = _blob()
    blob.open.return_value = io.BytesIO(b"hello")
    gcs_client.bucket.return_value.get_blob.return_value = blob

    assert store.get_stream("private", "a.pdf").read() == b"hello"
    blob.open.assert_called_once_with("rb")


def test_put_uploads_with_metadata(store, gcs_client):
    blob = gcs_client.bucket.return_value.blob.return_value
    blob.size = 5
    content = io.BytesIO(b"hello")
    content.read()

    stat = store.put("private", "a.pdf", content, 5, "application/pdf", {"Source": "website"})

    assert blob.metadata == {"Source": "website"}
    blob.upload_from_file.assert_called_once_with(content, size=5, content_type="application/pdf")
    assert content.tell() == 0
    assert stat.metadata == {"source": "website"}


def test_put_outage(store, gcs_client):
    blob = gcs_client.bucket.return_value.blob.return_value
    blob.upload_from_file.side_effect = ServiceUnavailable("503")

    with pytest.raises(StorageUnavailableError):
        store.put("private", "a.pdf", io.BytesIO(b"x"), 1)


def test_delete_is_idempotent(store, gcs_client):
    gcs_client.bucket.return_value.blob.return_value.delete.side_effect = NotFound("gone")

    assert store.delete("private", "a.pdf") is True
    assert store.delete("private", "") is True


def test_list_objects_with_folders(store, gcs_client):
    iterator = MagicMock()
    iterator.__iter__.return_value = iter([_blob(name="top.pdf", size=3)])
    iterator.prefixes = {"2025/"}
    gcs_client.list_blobs.return_value = iterator

    objects = store.list_objects("private", recursive=False)

    gcs_client.list_blobs.assert_called_once_with("private", prefix=None, delimiter="/")
    assert [(o.key, o.size, o.is_folder) for o in objects] == [
        ("top.pdf", 3, False),
        ("2025/", 0, True),
    ]


def test_presigned_get_uses_v4(store, gcs_client):
    blob = gcs_client.bucket.return_value.blob.return_value
    blob.generate_signed_url.return_value = "https://storage.googleapis.com/private/a.pdf?X-Goog-Signature=x"

    url = store.presigned_get("private", "a.pdf", ttl_seconds=600)

    assert url.startswith("https://storage.googleapis.com/")
    blob.generate_signed_url.assert_called_once_with(
        version="v4", expiration=timedelta(seconds=600), method="GET"
    )


def test_presigned_get_without_signing_key(store, gcs_client):
    blob = gcs_client.bucket.return_value.blob.return_value
    blob.generate_signed_url.side_effect = AttributeError("you need a private key")

    with pytest.raises(StorageUnavailableError):
        store.presigned_get("private", "a.pdf")


def test_presigned_put_uses_v4_put(store, gcs_client):
    blob = gcs_client.bucket.return_value.blob.return_value
    blob.generate_signed_url.return_value = "https://storage.googleapis.com/public/a.png?X-Goog-Signature=x"

    store.presigned_put("public", "a.png", ttl_seconds=120)

    blob.generate_signed_url.assert_called_once_with(
        version="v4", expiration=timedelta(seconds=120), method="PUT"
    )


def test_copy_blob_to_target_bucket(store, gcs_client):
    source_bucket = Mock()
    target_bucket = Mock()
    source = _blob()
    source_bucket.get_blob.return_value = source
    source_bucket.copy_blob.return_value = _blob(metadata={"Original-Name": "report.pdf"})
    gcs_client.bucket.side_effect = lambda name: {
        "private": source_bucket, "public": target_bucket
    }[name]

    stat = store.copy("private", "a.pdf", "public")

    source_bucket.copy_blob.assert_called_once_with(source, target_bucket, "a.pdf")
    assert stat.content_type == "application/pdf"
    assert stat.original_name == "report.pdf"


def test_copy_missing_object(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.return_value = None

    with pytest.raises(ObjectNotFoundError):
        store.copy("private", "a.pdf", "public")
    gcs_client.bucket.return_value.copy_blob.assert_not_called()


def test_copy_outage(store, gcs_client):
    gcs_client.bucket.return_value.get_blob.return_value = _blob()
    gcs_client.bucket.return_value.copy_blob.side_effect = ServiceUnavailable("503")

    with pytest.raises(StorageUnavailableError):
        store.copy("private", "a.pdf", "public")


def test_public_url(store):
    assert store.public_url("public", "2025/logo one.png") == (
        "https://storage.googleapis.com/public/2025/logo%20one.png"
    )


def test_ensure_bucket_creates_missing(store, gcs_client):
    gcs_client.lookup_bucket.return_value = None

    store.ensure_bucket("public")

    gcs_client.create_bucket.assert_called_once_with("public", location=None)


def test_ensure_bucket_keeps_existing(store, gcs_client):
    gcs_client.lookup_bucket.return_value = Mock()

    store.ensure_bucket("public")

    gcs_client.create_bucket.assert_not_called()


def test_health_check(store, gcs_client):
    gcs_client.list_buckets.return_value = iter([])
    assert store.health_check() is True

    gcs_client.list_buckets.side_effect = ServiceUnavailable("503")
    assert store.health_check() is False
