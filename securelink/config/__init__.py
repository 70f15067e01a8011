"""Configuration read from environment variables."""
