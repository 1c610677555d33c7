"""
Unit tests for the temp-copy Celery tasks.

Tasks are called directly; the storage service they resolve from the
container is overridden with a mock.
"""

from unittest.mock import Mock

import pytest

from storefront.application.storage_service import StorageService
from storefront.domain.errors import StorageFailureError
from storefront.domain.file_storage.entities import ReapStats


@pytest.fixture
def flask_app():
    from celery_app import flask_app as app

    yield app
    app.container.clear_overrides()


@pytest.fixture
def mock_storage_service(flask_app):
    mock = Mock(spec=StorageService)
    mock.provider = "local"
    mock.supports_temp_cleanup = True
    mock.cleanup_temp_files.return_value = ReapStats(scanned=3, removed=2, already_gone=1)
    mock.delete_temp_copy.return_value = True
    flask_app.container.override(StorageService, mock)
    return mock


class TestReapTempFiles:
    def test_returns_sweep_stats(self, mock_storage_service):
        from storefront.tasks.cleanup_task import reap_temp_files

        result = reap_temp_files()

        mock_storage_service.cleanup_temp_files.assert_called_once()
        assert result == {
            "scanned": 3, "removed": 2, "already_gone": 1, "failed": 0, "errors": [],
        }

    def test_skips_backend_without_temp_copies(self, mock_storage_service):
        from storefront.tasks.cleanup_task import reap_temp_files

        mock_storage_service.supports_temp_cleanup = False
        mock_storage_service.provider = "cdn"

        result = reap_temp_files()

        assert result == {"skipped": True, "provider": "cdn", "errors": []}
        mock_storage_service.cleanup_temp_files.assert_not_called()

    def test_reports_individual_failures(self, mock_storage_service):
        from storefront.tasks.cleanup_task import reap_temp_files

        mock_storage_service.cleanup_temp_files.return_value = ReapStats(
            scanned=1, failed=1, errors=["Failed to remove temp copy x: denied"]
        )

        result = reap_temp_files()

        assert result["failed"] == 1
        assert result["errors"] == ["Failed to remove temp copy x: denied"]

    def test_unexpected_error_is_reported_not_raised(self, mock_storage_service):
        from storefront.tasks.cleanup_task import reap_temp_files

        mock_storage_service.cleanup_temp_files.side_effect = RuntimeError("boom")

        result = reap_temp_files()

        assert result["removed"] == 0
        assert "boom" in result["errors"][0]


class TestDeleteTempCopy:
    def test_deletes_copy(self, mock_storage_service):
        from storefront.tasks.cleanup_task import delete_temp_copy

        assert delete_temp_copy("k.pdf") == {"temp_key": "k.pdf", "removed": True}
        mock_storage_service.delete_temp_copy.assert_called_once_with("k.pdf")

    def test_already_gone_is_success(self, mock_storage_service):
        from storefront.tasks.cleanup_task import delete_temp_copy

        mock_storage_service.delete_temp_copy.return_value = False
        assert delete_temp_copy("k.pdf")["removed"] is False

    def test_storage_failure_is_retried(self, mock_storage_service):
        from storefront.tasks.cleanup_task import delete_temp_copy

        mock_storage_service.delete_temp_copy.side_effect = StorageFailureError("busy")

        # Called directly, retry() re-raises the original error
        with pytest.raises(StorageFailureError):
            delete_temp_copy("k.pdf")

    def test_task_names(self):
        from storefront.config.celery_config import DELETE_TEMP_COPY_TASK, REAP_TEMP_FILES_TASK
        from storefront.tasks.cleanup_task import delete_temp_copy, reap_temp_files

        assert reap_temp_files.name == REAP_TEMP_FILES_TASK
        assert delete_temp_copy.name == DELETE_TEMP_COPY_TASK
