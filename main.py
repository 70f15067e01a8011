"""
main.py

Flask backend serving file uploads and secure, expiring download links.

Dependencies:
  - Python packages: Flask, flask-restx, flask-cors, redis, celery,
    google-cloud-storage, boto3
  - Infrastructure: Redis server (only with SECURE_LINK_STORE=redis), an
    object store (local directory, GCS or S3/MinIO)

Notes:
  - API v1 endpoints available at /api/v1/ with Swagger docs at /api/v1/docs
  - Secure links resolve at /api/v1/secure/{id}/{timestamp}/{hash}
  - Uses application factory pattern for better testability
"""

import os

from app_factory import create_app

app = create_app()

if __name__ == "__main__":
    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", 8000))
    debug = os.getenv("FLASK_DEBUG", "false").lower() == "true"

    app.run(host=host, port=port, debug=debug)
