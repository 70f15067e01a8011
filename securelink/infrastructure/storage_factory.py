"""
Storage Factory

Factory for creating the blob store implementation.

The backend is picked from STORAGE_BACKEND; the application layer stays
decoupled from the concrete implementation via the `IBlobStore` interface.
"""

import logging
from typing import Optional

from securelink.config.storage_config import StorageConfig
from securelink.domain.file_storage.blob_store import IBlobStore
from securelink.domain.file_storage.signed_url_service import SignedUrlService

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("local", "gcs", "s3")


class StorageFactory:
    """Factory that returns the configured blob store."""

    @staticmethod
    def create_storage(
        config: Optional[StorageConfig] = None,
        signer: Optional[SignedUrlService] = None,
    ) -> IBlobStore:
        """
        Create the blob store selected by the configuration.

        Args:
            config: Storage configuration (default: from environment)
            signer: URL signer for the local backend

        Returns:
            `IBlobStore` implementation

        Raises:
            ValueError: If STORAGE_BACKEND names an unknown backend
            RuntimeError: If the backend could not be initialized
        """
        config = config or StorageConfig()

        if config.backend == "local":
            return StorageFactory._create_local_storage(config, signer)
        if config.backend == "gcs":
            return StorageFactory._create_gcs_storage(config)
        if config.backend == "s3":
            return StorageFactory._create_s3_storage(config)

        raise ValueError(
            f"Unknown STORAGE_BACKEND {config.backend!r}; expected one of {SUPPORTED_BACKENDS}"
        )

    @staticmethod
    def _create_local_storage(
        config: StorageConfig, signer: Optional[SignedUrlService]
    ) -> IBlobStore:
        from securelink.infrastructure.local_blob_store import LocalBlobStore

        try:
            storage = LocalBlobStore(config.local_dir, signer=signer)
        except Exception as e:
            raise RuntimeError(f"Failed to initialize local storage: {e}") from e
        logger.info(f"Storage factory: Using local filesystem storage at {config.local_dir}")
        return storage

    @staticmethod
    def _create_gcs_storage(config: StorageConfig) -> IBlobStore:
        from securelink.infrastructure.gcs_blob_store import GCSBlobStore

        try:
            storage = GCSBlobStore(public_base_url=config.public_base_url)
        except Exception as e:
            raise RuntimeError(f"Failed to initialize GCS storage: {e}") from e
        logger.info("Storage factory: Using Google Cloud Storage")
        return storage

    @staticmethod
    def _create_s3_storage(config: StorageConfig) -> IBlobStore:
        from securelink.infrastructure.s3_blob_store import S3BlobStore

        try:
            storage = S3BlobStore(
                endpoint_url=config.endpoint_url,
                access_key=config.access_key or None,
                secret_key=config.secret_key or None,
                region=config.region,
                public_base_url=config.public_base_url,
            )
        except Exception as e:
            raise RuntimeError(f"Failed to initialize S3 storage: {e}") from e
        # Endpoint only; credentials stay out of the logs
        logger.info(f"Storage factory: Using S3-compatible storage at {config.endpoint_url}")
        return storage
