"""
Signed URL Service

Service for generating time-limited HMAC-signed URLs for objects served by
this application itself (the local storage backend). Cloud backends use
their native presigning instead.
"""

import hashlib
import hmac
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode


@dataclass
class SignedUrl:
    """
    Represents a signed URL with expiration and validation.
    """

    url: str
    expires_at: datetime
    signature: str

    def is_expired(self) -> bool:
        """Check if the signed URL has expired."""
        return datetime.now(timezone.utc) >= self.expires_at

    def get_remaining_seconds(self) -> int:
        """Get remaining seconds until expiration."""
        remaining = self.expires_at - datetime.now(timezone.utc)
        return max(0, int(remaining.total_seconds()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "expires_at": self.expires_at.isoformat(),
            "expires_in": self.get_remaining_seconds(),
            "signature": self.signature,
        }


class SignedUrlService:
    """
    Service for generating and validating signed object URLs.

    The signature covers bucket, key and the expiry timestamp, so none of
    them can be changed without invalidating the URL.
    """

    def __init__(
        self, secret_key: Optional[str] = None, base_url: Optional[str] = None
    ):
        """
        Initialize SignedUrlService.

        Args:
            secret_key: Secret key for HMAC signing (optional, uses SECRET_KEY
                env var or generates one if not provided; a generated key does
                not survive restarts)
            base_url: URL prefix objects are served under, without trailing
                slash (e.g., 'http://localhost:8000/api/v1/storage')
        """
        self.secret_key = (
            secret_key or os.getenv("SECRET_KEY") or self._generate_secret_key()
        )
        self.base_url = (base_url or "/api/v1/storage").rstrip("/")

    @staticmethod
    def _generate_secret_key(length: int = 32) -> str:
        """Generate a cryptographically secure secret key."""
        return secrets.token_hex(length)

    def object_url(self, bucket: str, key: str) -> str:
        """Unsigned URL of an object under the base URL."""
        return f"{self.base_url}/{quote(bucket, safe='')}/{quote(key, safe='/')}"

    def generate_signed_url(
        self,
        bucket: str,
        key: str,
        ttl_seconds: int = 3600,
        expires_at: Optional[datetime] = None,
        method: str = "GET",
    ) -> SignedUrl:
        """
        Generate a signed URL for object access.

        Args:
            bucket: Bucket name
            key: Object key
            ttl_seconds: Time to live in seconds
            expires_at: Optional specific expiration datetime (if not provided,
                calculated from ttl_seconds)
            method: HTTP method the URL is valid for (GET or PUT)

        Returns:
            SignedUrl object with URL and expiration information
        """
        if expires_at is None:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)

        expires = int(expires_at.timestamp())
        signature = self._generate_signature(bucket, key, expires, method)
        query = urlencode({"expires": expires, "signature": signature})

        return SignedUrl(
            url=f"{self.object_url(bucket, key)}?{query}",
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
            signature=signature,
        )

    def _generate_signature(
        self, bucket: str, key: str, expires: int, method: str = "GET"
    ) -> str:
        """
        Generate HMAC-SHA256 signature for an object and expiry.

        Args:
            bucket: Bucket name
            key: Object key
            expires: Expiry as seconds since the epoch
            method: HTTP method; GET keeps the plain message

        Returns:
            HMAC signature as hex string
        """
        message = f"{bucket}/{key}:{expires}"
        if method.upper() != "GET":
            message = f"{method.upper()} {message}"

        return hmac.new(
            self.secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    def validate_signature(
        self, bucket: str, key: str, signature: str, expires: int, method: str = "GET"
    ) -> bool:
        """
        Validate a signature and its expiry.

        Args:
            bucket: Bucket name
            key: Object key
            signature: HMAC signature to validate
            expires: Expiry as seconds since the epoch
            method: HTTP method of the request

        Returns:
            True if the signature matches and has not expired, False otherwise
        """
        if not signature:
            return False

        if datetime.now(timezone.utc).timestamp() >= expires:
            return False

        expected_signature = self._generate_signature(bucket, key, expires, method)

        # Use constant-time comparison to prevent timing attacks
        return hmac.compare_digest(signature, expected_signature)
