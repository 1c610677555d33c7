"""
Storage Factory

Builds the single storage backend for this process from configuration.
The choice is made once at start-up; nothing downstream branches on it.
"""

import logging
from typing import Optional

from storefront.config.storage_config import (
    PROVIDER_CDN,
    PROVIDER_LOCAL,
    PROVIDER_OBJECT_STORE,
    StorageConfig,
)
from storefront.domain.errors import StorageConfigurationError
from storefront.domain.file_storage.signed_url_service import SignedUrlService
from storefront.domain.file_storage.storage_repository import StorageBackend
from storefront.infrastructure.deletion_scheduler import (
    CeleryDeletionScheduler,
    DeletionScheduler,
)

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory for storage backend instances based on configuration."""

    @staticmethod
    def create_storage(config: Optional[StorageConfig] = None, celery=None) -> StorageBackend:
        """
        Create the storage backend selected by STORAGE_PROVIDER.

        Args:
            config: Storage configuration; read from the environment if None
            celery: Celery app, required when temp deletions are queued
                through Celery

        Returns:
            LocalStorageBackend, GCSStorageBackend or CloudinaryStorageBackend

        Raises:
            StorageConfigurationError: Unknown provider or missing settings
        """
        config = config or StorageConfig()
        config.validate()
        provider = config.normalized_provider

        if provider == PROVIDER_LOCAL:
            backend = StorageFactory._create_local_storage(config, celery)
        elif provider == PROVIDER_OBJECT_STORE:
            backend = StorageFactory._create_gcs_storage(config)
        elif provider == PROVIDER_CDN:
            backend = StorageFactory._create_cloudinary_storage(config)
        else:  # pragma: no cover - normalized_provider rejects anything else
            raise StorageConfigurationError(f"Unknown storage provider: {provider}")

        logger.info(f"Storage factory: using {backend.provider} storage backend")
        return backend

    @staticmethod
    def _create_local_storage(config: StorageConfig, celery=None) -> StorageBackend:
        from storefront.infrastructure.local_storage_backend import LocalStorageBackend

        scheduler: Optional[DeletionScheduler] = None
        if config.deletion_scheduler == "celery":
            if celery is None:
                raise StorageConfigurationError(
                    "TEMP_DELETION_SCHEDULER=celery requires a Celery application"
                )
            scheduler = CeleryDeletionScheduler(celery)

        signed_url_service = SignedUrlService(
            secret_key=config.signing_secret,
            base_url=config.download_base_url,
        )
        return LocalStorageBackend(
            upload_dir=config.upload_dir,
            temp_dir=config.temp_dir,
            signed_url_service=signed_url_service,
            uploads_url_prefix=config.uploads_url_prefix,
            temp_url_prefix=config.temp_url_prefix,
            retention_seconds=config.temp_retention_seconds,
            deletion_scheduler=scheduler,
        )

    @staticmethod
    def _create_gcs_storage(config: StorageConfig) -> StorageBackend:
        from storefront.config.gcs_config import create_gcs_client
        from storefront.infrastructure.gcs_storage_backend import GCSStorageBackend

        client = create_gcs_client(config.gcs_credentials_path, config.gcs_project)
        return GCSStorageBackend(config.gcs_bucket_name, client=client)

    @staticmethod
    def _create_cloudinary_storage(config: StorageConfig) -> StorageBackend:
        from storefront.infrastructure.cloudinary_storage_backend import (
            CloudinaryStorageBackend,
        )

        return CloudinaryStorageBackend(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
        )
