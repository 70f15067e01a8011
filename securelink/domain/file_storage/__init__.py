"""
File Storage Domain

Blob store contract, uploaded file records and local URL signing.
"""

from .blob_store import IBlobStore
from .entities import StoredFile, generate_random_id
from .signed_url_service import SignedUrl, SignedUrlService
from .value_objects import (
    BucketStats,
    ObjectStat,
    StoredFileRef,
    StoredObject,
    Visibility,
)

__all__ = [
    "IBlobStore",
    "StoredFile",
    "generate_random_id",
    "SignedUrl",
    "SignedUrlService",
    "BucketStats",
    "ObjectStat",
    "StoredFileRef",
    "StoredObject",
    "Visibility",
]
