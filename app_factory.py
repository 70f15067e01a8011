"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from securelink.application.dependency_container import DependencyContainer
from securelink.application.event_publisher import EventPublisher
from securelink.application.file_access_service import FileAccessService
from securelink.application.file_service import FileService
from securelink.config.app_config import AppConfig
from securelink.config.celery_config import make_celery
from securelink.config.link_config import SecureLinkConfig
from securelink.config.redis_config import (
    get_redis_repository,
    init_redis,
    redis_health_check,
)
from securelink.config.storage_config import StorageConfig
from securelink.domain.errors import StorageUnavailableError
from securelink.domain.file_storage import IBlobStore, SignedUrlService
from securelink.domain.secure_links import SecureUrlMappingRepository, SecureUrlRegistry
from securelink.infrastructure.in_memory_mapping_repository import (
    InMemorySecureUrlMappingRepository,
)
from securelink.infrastructure.redis_mapping_repository import (
    RedisSecureUrlMappingRepository,
)
from securelink.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[DependencyContainer] = None,
    start_sweeper: bool = True,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Pre-built container (tests); services are wired from the
            environment if None
        start_sweeper: Start the registry's background sweep

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": config.cors_origins,
                "methods": ["GET", "HEAD", "POST", "PUT", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "expose_headers": ["Content-Type", "Content-Length", "Content-Disposition"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app)

    if container is None:
        container = _initialize_services(config)
    app.container = container

    if start_sweeper and container.is_registered(SecureUrlRegistry):
        container.resolve(SecureUrlRegistry).start()

    _register_blueprints(app, config)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(app: Flask) -> None:
    """
    Initialize Celery.

    A broken broker configuration leaves the API running without scheduled
    sweeps; the registry's own sweeper still runs.
    """
    try:
        app.celery = make_celery(app)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")
        app.celery = None


def _create_mapping_repository(link_config: SecureLinkConfig) -> SecureUrlMappingRepository:
    if link_config.store == "redis":
        init_redis()
        logger.info("Secure links stored in Redis")
        return RedisSecureUrlMappingRepository(get_redis_repository())
    if link_config.store != "memory":
        raise ValueError(
            f"Unknown SECURE_LINK_STORE {link_config.store!r}; expected 'memory' or 'redis'"
        )
    logger.info("Secure links stored in process memory")
    return InMemorySecureUrlMappingRepository()


def _initialize_services(config: AppConfig) -> DependencyContainer:
    """
    Build the dependency container.

    PATTERN:
    --------
    1. Create DependencyContainer instance
    2. Register configuration and infrastructure adapters (blob store, link store)
    3. Register domain services (registry)
    4. Register application services (file access, files)

    API routes and tasks resolve services via container.resolve().
    """
    container = DependencyContainer()

    storage_config = StorageConfig()
    link_config = SecureLinkConfig()
    container.register_singleton(StorageConfig, storage_config)
    container.register_singleton(SecureLinkConfig, link_config)

    signer = SignedUrlService(
        secret_key=link_config.secret_key,
        base_url=storage_config.public_base_url or f"/api/{config.api_version}/storage",
    )
    container.register_singleton(SignedUrlService, signer)

    blob_store = StorageFactory.create_storage(storage_config, signer)
    container.register_singleton(IBlobStore, blob_store)

    for bucket in (storage_config.public_bucket, storage_config.private_bucket):
        try:
            blob_store.ensure_bucket(bucket)
        except StorageUnavailableError as e:
            # Buckets are ensured again on upload
            logger.warning(f"Could not ensure bucket {bucket}: {e}")

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    repository = _create_mapping_repository(link_config)
    container.register_singleton(SecureUrlMappingRepository, repository)

    registry = SecureUrlRegistry(
        repository,
        blob_store,
        event_publisher=event_publisher,
        sweep_interval_seconds=link_config.sweep_interval_seconds,
    )
    container.register_singleton(SecureUrlRegistry, registry)

    access_service = FileAccessService(blob_store, registry, link_config)
    container.register_singleton(FileAccessService, access_service)
    container.register_singleton(
        FileService, FileService(blob_store, access_service, storage_config)
    )

    logger.info(
        f"Application services initialized (storage={storage_config.backend}, "
        f"links={link_config.store})"
    )
    return container


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """Register API blueprints."""
    from securelink.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "redis": "not_configured",
        "storage": "unknown",
        "celery": "unknown",
        "secure_link_store": "unknown",
    }

    container = app.container
    link_config = (
        container.resolve(SecureLinkConfig)
        if container.is_registered(SecureLinkConfig)
        else SecureLinkConfig()
    )
    health_status["secure_link_store"] = link_config.store

    if link_config.store == "redis":
        if redis_health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"

    if container.is_registered(IBlobStore) and container.resolve(IBlobStore).health_check():
        health_status["storage"] = "available"
    else:
        health_status["storage"] = "unavailable"
        health_status["status"] = "degraded"

    # Celery is optional - the registry sweeps on its own
    health_status["celery"] = "available" if getattr(app, "celery", None) else "unavailable"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """Register health check endpoint."""

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
