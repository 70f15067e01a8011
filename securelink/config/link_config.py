"""
Secure Link Configuration

Lifetimes and limits of the link classes, and where mappings are stored.
"""

import os
from datetime import timedelta


class SecureLinkConfig:
    """Secure link configuration settings."""

    def __init__(self):
        # Prefix joined in front of /secure/... paths handed to clients
        self.base_url = os.getenv("SECURE_LINK_BASE_URL", "/api/v1").rstrip("/")
        self.store = os.getenv("SECURE_LINK_STORE", "memory").strip().lower()

        self.secure_url_expiry_hours = int(os.getenv("SECURE_URL_EXPIRY_HOURS", 24))
        self.temporary_url_expiry_minutes = int(os.getenv("TEMPORARY_URL_EXPIRY_MINUTES", 15))
        self.tracked_url_max_accesses = int(os.getenv("TRACKED_URL_MAX_ACCESSES", 10))
        self.presigned_url_ttl_seconds = int(os.getenv("PRESIGNED_URL_TTL_SECONDS", 3600))
        self.sweep_interval_seconds = float(os.getenv("SWEEP_INTERVAL_SECONDS", 3600))

        # HMAC key for locally signed object URLs
        self.secret_key = os.getenv("SECRET_KEY")

    @property
    def secure_url_expiry(self) -> timedelta:
        return timedelta(hours=self.secure_url_expiry_hours)

    @property
    def temporary_url_expiry(self) -> timedelta:
        return timedelta(minutes=self.temporary_url_expiry_minutes)
