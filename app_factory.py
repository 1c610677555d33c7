"""
Application Factory

Creates and configures the Flask application with the storage core wired
in. The storage backend is chosen once here from configuration; tests pass
their own configuration objects instead of touching the environment.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from storefront.api.media import create_media_blueprint
from storefront.application.dependency_container import DependencyContainer
from storefront.application.storage_service import StorageService
from storefront.application.upload_policy import UploadPolicy
from storefront.config.celery_config import make_celery
from storefront.config.redis_config import redis_health_check
from storefront.config.storage_config import StorageConfig
from storefront.infrastructure.deletion_scheduler import IntervalReaper
from storefront.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.cors_origins = os.getenv("CORS_ORIGINS", "*")


def create_app(
    config: Optional[AppConfig] = None,
    storage_config: Optional[StorageConfig] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        storage_config: Storage configuration, read from the environment if None

    Returns:
        Configured Flask application

    Raises:
        StorageConfigurationError: If the selected storage provider is
            unknown or missing required settings
    """
    if config is None:
        config = AppConfig()
    if storage_config is None:
        storage_config = StorageConfig()

    app = Flask(__name__)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": config.cors_origins,
                "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app)
    _initialize_services(app, storage_config)
    _register_blueprints(app, config, storage_config)
    _register_health_endpoint(app)
    _start_temp_reaper(app, storage_config)

    return app


def _initialize_infrastructure(app: Flask) -> None:
    """
    Initialize Celery. Creating the Celery app does not contact the broker,
    so a missing broker only shows up in /health and in task dispatch.
    """
    try:
        app.celery = make_celery(app)
        logger.info("Celery initialized successfully")
    except Exception as e:
        logger.warning(f"Could not initialize Celery: {e}")
        app.celery = None


def _initialize_services(app: Flask, storage_config: StorageConfig) -> None:
    """
    Build the storage backend and register services on the container.

    Unlike optional infrastructure, storage configuration errors propagate:
    the process must not start without a working backend.
    """
    container = DependencyContainer()

    backend = StorageFactory.create_storage(storage_config, celery=app.celery)
    storage_service = StorageService(backend, default_expiry=storage_config.default_signed_url_expiry)

    container.register_singleton(StorageService, storage_service)
    container.register_singleton(UploadPolicy, UploadPolicy.from_config(storage_config))

    app.container = container
    app.storage_service = storage_service

    logger.info(
        f"Application services initialized with {storage_service.provider} storage "
        f"({len(container)} registered services)"
    )


def _register_blueprints(app: Flask, config: AppConfig, storage_config: StorageConfig) -> None:
    """
    Register API and media blueprints.

    The temp-copy route exists only when the backend keeps temp copies.
    """
    from storefront.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)
    app.register_blueprint(
        create_media_blueprint(
            storage_config.uploads_url_prefix,
            storage_config.temp_url_prefix,
            serve_temp=app.storage_service.supports_temp_cleanup,
        )
    )

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _start_temp_reaper(app: Flask, storage_config: StorageConfig) -> None:
    """Run the reaper in-process when no Celery beat is deployed."""
    app.temp_reaper = None
    if storage_config.reaper_mode != "thread" or not app.storage_service.supports_temp_cleanup:
        return

    reaper = IntervalReaper(
        app.storage_service.cleanup_temp_files,
        storage_config.reaper_interval_seconds,
    )
    reaper.start()
    app.temp_reaper = reaper


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "storage": app.storage_service.get_storage_info(),
        "redis": "unknown",
        "celery": "unknown",
    }

    try:
        if redis_health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["redis"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the application and its dependencies."""
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
