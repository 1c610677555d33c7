"""
Shared pytest fixtures and configuration for the storefront storage test suite.

This module provides:
- Hypothesis configuration for property-based testing
- Environment defaults so importing celery_app never touches real paths
- Storage backend, service and Flask app fixtures
"""

import os
import tempfile
from unittest.mock import Mock

import pytest
from hypothesis import HealthCheck, Phase, settings

# celery_app builds an app at import time; point it at a throwaway location
_SESSION_ROOT = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["UPLOAD_DIR"] = os.path.join(_SESSION_ROOT, "uploads")
os.environ["TEMP_DIR"] = os.path.join(_SESSION_ROOT, "temp")
os.environ["TEMP_REAPER_MODE"] = "off"
os.environ["TEMP_DELETION_SCHEDULER"] = "thread"
os.environ.setdefault("STORAGE_SIGNING_SECRET", "test-signing-secret")

from storefront.config.storage_config import StorageConfig  # noqa: E402
from storefront.domain.file_storage.signed_url_service import SignedUrlService  # noqa: E402
from storefront.infrastructure.deletion_scheduler import DeletionScheduler  # noqa: E402
from storefront.infrastructure.local_storage_backend import LocalStorageBackend  # noqa: E402

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def storage_dirs(tmp_path):
    """Provide fresh (upload_dir, temp_dir) paths under pytest's tmp_path."""
    return tmp_path / "uploads", tmp_path / "temp"


@pytest.fixture
def signed_url_service() -> SignedUrlService:
    """Provide a SignedUrlService with a fixed secret and relative URLs."""
    return SignedUrlService(secret_key="unit-test-secret", base_url="")


@pytest.fixture
def recording_scheduler():
    """
    Provide a deletion scheduler that records calls instead of starting timers.
    """
    return Mock(spec=DeletionScheduler)


@pytest.fixture
def local_backend(storage_dirs, signed_url_service, recording_scheduler) -> LocalStorageBackend:
    """Provide a LocalStorageBackend rooted in tmp_path."""
    upload_dir, temp_dir = storage_dirs
    return LocalStorageBackend(
        upload_dir=str(upload_dir),
        temp_dir=str(temp_dir),
        signed_url_service=signed_url_service,
        deletion_scheduler=recording_scheduler,
    )


@pytest.fixture
def storage_env(monkeypatch, storage_dirs):
    """
    Point storage environment variables at tmp_path.

    Returns a function applying extra overrides, e.g. storage_env(MAX_FILE_SIZE="10").
    """
    upload_dir, temp_dir = storage_dirs
    monkeypatch.setenv("STORAGE_PROVIDER", "local")
    monkeypatch.setenv("UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("TEMP_DIR", str(temp_dir))
    monkeypatch.setenv("TEMP_REAPER_MODE", "off")
    monkeypatch.setenv("TEMP_DELETION_SCHEDULER", "thread")
    monkeypatch.setenv("STORAGE_SIGNING_SECRET", "app-test-secret")
    monkeypatch.delenv("ALLOWED_FILE_TYPES", raising=False)
    monkeypatch.delenv("DOWNLOAD_BASE_URL", raising=False)

    def apply(**overrides):
        for name, value in overrides.items():
            monkeypatch.setenv(name, str(value))
        return StorageConfig()

    return apply


@pytest.fixture
def app(storage_env):
    """Create a Flask app wired to local storage in tmp_path."""
    from app_factory import create_app

    flask_app = create_app(storage_config=storage_env())
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.storage_service.backend.deletion_scheduler.shutdown()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (real filesystem and timers)"
    )
    config.addinivalue_line(
        "markers", "contract: Contract tests (verify interface compliance)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that sleep on real timers"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/contracts/* -> @pytest.mark.contract
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/contracts/" in test_path or "\\contracts\\" in test_path:
            item.add_marker(pytest.mark.contract)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
