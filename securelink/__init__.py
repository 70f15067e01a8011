"""SecureLink: file storage with expiring, access-limited download links."""

__version__ = "1.0.0"
