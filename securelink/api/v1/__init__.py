"""
API v1 - SecureLink REST API

This module contains the versioned API endpoints with OpenAPI/Swagger documentation.
"""

import os

from flask import Blueprint
from flask_restx import Api

# Get API version from environment
API_VERSION = os.getenv("API_VERSION", "v1")

# Create blueprint for API v1
api_v1_bp = Blueprint("api_v1", __name__, url_prefix=f"/api/{API_VERSION}")

# Initialize Flask-RESTX API with Swagger documentation
api = Api(
    api_v1_bp,
    version="1.0",
    title="SecureLink API",
    description="File storage API with expiring, access-limited secure download links",
    doc="/docs",  # Swagger UI will be available at /api/v1/docs
    # No authentication required
)

# Import namespaces after api is created to avoid circular imports
from .namespaces import files_ns, secure_links_ns, secure_ns, storage_ns

# Register namespaces
api.add_namespace(files_ns, path="/files")
api.add_namespace(secure_ns, path="/secure")
api.add_namespace(secure_links_ns, path="/secure-links")
api.add_namespace(storage_ns, path="/storage")
