"""
Application Configuration

Process-wide settings for the Flask application.
"""

import os


class AppConfig:
    """Application configuration settings."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.environment = os.getenv("FLASK_ENV", "production")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

    @property
    def debug(self) -> bool:
        return self.environment == "development"
