"""
Unit tests for StorageFactory backend selection.
"""

from unittest.mock import MagicMock, patch

import pytest

from storefront.domain.errors import StorageConfigurationError
from storefront.infrastructure.deletion_scheduler import (
    CeleryDeletionScheduler,
    ThreadingDeletionScheduler,
)
from storefront.infrastructure.local_storage_backend import LocalStorageBackend
from storefront.infrastructure.storage_factory import StorageFactory


class TestLocalSelection:
    @pytest.mark.parametrize("provider", ["local", "LOCAL", "filesystem"])
    def test_local_provider(self, storage_env, provider):
        backend = StorageFactory.create_storage(storage_env(STORAGE_PROVIDER=provider))
        assert isinstance(backend, LocalStorageBackend)
        assert isinstance(backend.deletion_scheduler, ThreadingDeletionScheduler)

    def test_local_settings_are_applied(self, storage_env, storage_dirs):
        config = storage_env(
            TEMP_URL_PREFIX="/downloads",
            TEMP_RETENTION_SECONDS=120,
            DOWNLOAD_BASE_URL="https://shop.example",
        )
        backend = StorageFactory.create_storage(config)

        assert backend.temp_dir == storage_dirs[1].resolve()
        assert backend.temp_url_prefix == "/downloads"
        assert backend.reaper.retention_seconds == 120
        assert backend.signed_url_service.base_url == "https://shop.example"
        assert backend.signed_url_service.secret_key == "app-test-secret"

    def test_celery_scheduler(self, storage_env):
        celery = MagicMock()
        backend = StorageFactory.create_storage(
            storage_env(TEMP_DELETION_SCHEDULER="celery"), celery=celery
        )
        assert isinstance(backend.deletion_scheduler, CeleryDeletionScheduler)
        assert backend.deletion_scheduler.celery is celery

    def test_celery_scheduler_without_celery_fails(self, storage_env):
        with pytest.raises(StorageConfigurationError):
            StorageFactory.create_storage(storage_env(TEMP_DELETION_SCHEDULER="celery"))


class TestRemoteSelection:
    def test_object_store_requires_bucket(self, storage_env, monkeypatch):
        monkeypatch.delenv("GCS_BUCKET_NAME", raising=False)
        with pytest.raises(StorageConfigurationError, match="GCS_BUCKET_NAME"):
            StorageFactory.create_storage(storage_env(STORAGE_PROVIDER="object-store"))

    def test_object_store(self, storage_env):
        config = storage_env(STORAGE_PROVIDER="gcs", GCS_BUCKET_NAME="products")
        client = MagicMock()
        with patch("storefront.config.gcs_config.create_gcs_client", return_value=client) as create:
            backend = StorageFactory.create_storage(config)

        create.assert_called_once()
        assert backend.provider == "object-store"
        assert backend.client is client

    def test_cdn_requires_all_credentials(self, storage_env, monkeypatch):
        for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET"):
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(StorageConfigurationError) as exc_info:
            StorageFactory.create_storage(storage_env(STORAGE_PROVIDER="cdn", CLOUDINARY_CLOUD_NAME="demo"))
        assert "CLOUDINARY_API_KEY" in str(exc_info.value)
        assert "CLOUDINARY_API_SECRET" in str(exc_info.value)

    def test_cdn(self, storage_env):
        config = storage_env(
            STORAGE_PROVIDER="cloudinary",
            CLOUDINARY_CLOUD_NAME="demo",
            CLOUDINARY_API_KEY="key",
            CLOUDINARY_API_SECRET="secret",
        )
        with patch("storefront.infrastructure.cloudinary_storage_backend.cloudinary"):
            backend = StorageFactory.create_storage(config)
        assert backend.provider == "cdn"


def test_unknown_provider(storage_env):
    with pytest.raises(StorageConfigurationError, match="Unknown storage provider"):
        StorageFactory.create_storage(storage_env(STORAGE_PROVIDER="ftp"))
