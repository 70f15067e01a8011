"""
Secure Path Codec

Derives the three segments of a secure link path and verifies presented
segments against a stored mapping, without storing the hash itself.
"""

import hashlib
import hmac
import secrets
import string
from datetime import datetime
from typing import Optional

from securelink.domain.errors import InvalidSecurePathError

from .entities import SecureUrlMapping, utc_now
from .value_objects import SECURE_PATH_PREFIX, SecurePath

SECURE_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
SECURE_ID_LENGTH = 16
HASH_LENGTH = 8

_BASE36_DIGITS = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


class SecurePathCodec:
    """
    Mints and checks /secure/{secure_id}/{timestamp}/{hash} paths.

    The hash is the first 8 hex characters of SHA-256 over
    bucket_name + object_key + timestamp. It ties the timestamp segment to
    the backing object so tampering with either segment is detected; it is
    an integrity check, not a capability. The 16 random characters of the
    secure id carry the unguessability.
    """

    def __init__(self, id_length: int = SECURE_ID_LENGTH):
        self.id_length = id_length

    def generate_secure_id(self) -> str:
        """Cryptographically random id from the URL-safe alphabet."""
        return "".join(secrets.choice(SECURE_ID_ALPHABET) for _ in range(self.id_length))

    @staticmethod
    def encode_timestamp(now: Optional[datetime] = None) -> str:
        """Milliseconds since the epoch in base 36."""
        moment = now or utc_now()
        return to_base36(int(moment.timestamp() * 1000))

    @staticmethod
    def compute_hash(bucket_name: str, object_key: str, timestamp: str) -> str:
        """First 8 hex characters of SHA-256(bucket_name + object_key + timestamp)."""
        digest = hashlib.sha256(
            f"{bucket_name}{object_key}{timestamp}".encode("utf-8")
        ).hexdigest()
        return digest[:HASH_LENGTH]

    def mint(
        self, bucket_name: str, object_key: str, now: Optional[datetime] = None
    ) -> SecurePath:
        """
        Derive a fresh path triple for an object.

        Args:
            bucket_name: Bucket of the backing object
            object_key: Key of the backing object
            now: Issuance time (default: current UTC time)

        Returns:
            SecurePath with a new random id
        """
        timestamp = self.encode_timestamp(now)
        return SecurePath(
            secure_id=self.generate_secure_id(),
            timestamp=timestamp,
            hash=self.compute_hash(bucket_name, object_key, timestamp),
        )

    def verify(self, mapping: SecureUrlMapping, timestamp: str, hash: str) -> bool:
        """
        Check a presented timestamp/hash pair against a stored mapping.

        The expected hash is recomputed from the mapping's own bucket and key
        and the presented timestamp; any difference fails.
        """
        if not timestamp or not hash:
            return False
        expected = self.compute_hash(mapping.bucket_name, mapping.object_key, timestamp)
        return hmac.compare_digest(expected.encode("utf-8"), hash.encode("utf-8"))

    @staticmethod
    def build_path(secure_id: str, timestamp: str, hash: str) -> str:
        """Render the three segments as a path."""
        return SecurePath(secure_id, timestamp, hash).to_path()

    @staticmethod
    def parse_path(path: str) -> SecurePath:
        """
        Split a /secure/{id}/{timestamp}/{hash} path into its segments.

        A URL prefix before /secure (e.g. 'https://host/api/v1') is ignored.

        Raises:
            InvalidSecurePathError: If the path does not have that shape
        """
        if not path:
            raise InvalidSecurePathError("Empty secure path")

        marker = path.rfind(f"{SECURE_PATH_PREFIX}/")
        if marker < 0:
            raise InvalidSecurePathError("Path does not contain a /secure/ segment")

        segments = path[marker + len(SECURE_PATH_PREFIX):].strip("/").split("/")
        if len(segments) != 3 or not all(segments):
            raise InvalidSecurePathError("Secure path must have exactly three segments")

        return SecurePath(*segments)
