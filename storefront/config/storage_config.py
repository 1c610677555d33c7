"""
Storage Configuration

Reads storage settings from the environment and validates that the selected
provider has everything it needs before any backend is built.
"""

import os
import tempfile
from typing import List, Optional

from storefront.domain.errors import StorageConfigurationError

PROVIDER_LOCAL = "local"
PROVIDER_OBJECT_STORE = "object-store"
PROVIDER_CDN = "cdn"

PROVIDER_ALIASES = {
    "local": PROVIDER_LOCAL,
    "filesystem": PROVIDER_LOCAL,
    "object-store": PROVIDER_OBJECT_STORE,
    "gcs": PROVIDER_OBJECT_STORE,
    "cdn": PROVIDER_CDN,
    "cloudinary": PROVIDER_CDN,
}


def _default_dir(name: str) -> str:
    return os.path.join(tempfile.gettempdir(), "storefront", name)


def _int_setting(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise StorageConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class StorageConfig:
    """Storage configuration settings."""

    def __init__(self):
        self.provider = os.getenv("STORAGE_PROVIDER", PROVIDER_LOCAL).strip().lower()

        # Local filesystem
        self.upload_dir = os.getenv("UPLOAD_DIR", _default_dir("uploads"))
        self.temp_dir = os.getenv("TEMP_DIR", _default_dir("temp"))
        self.uploads_url_prefix = os.getenv("UPLOADS_URL_PREFIX", "/uploads")
        self.temp_url_prefix = os.getenv("TEMP_URL_PREFIX", "/temp")
        self.download_base_url = os.getenv("DOWNLOAD_BASE_URL", "")
        self.signing_secret = os.getenv("STORAGE_SIGNING_SECRET") or os.getenv("SECRET_KEY")

        # Google Cloud Storage
        self.gcs_bucket_name = os.getenv("GCS_BUCKET_NAME")
        self.gcs_project = os.getenv("GCS_PROJECT")
        self.gcs_credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

        # Cloudinary
        self.cloudinary_cloud_name = os.getenv("CLOUDINARY_CLOUD_NAME")
        self.cloudinary_api_key = os.getenv("CLOUDINARY_API_KEY")
        self.cloudinary_api_secret = os.getenv("CLOUDINARY_API_SECRET")

        # Signed URLs and temp copies
        self.default_signed_url_expiry = _int_setting("SIGNED_URL_DEFAULT_EXPIRY", 3600)
        self.reaper_interval_seconds = _int_setting("TEMP_REAPER_INTERVAL", 3600)
        self.temp_retention_seconds = _int_setting("TEMP_RETENTION_SECONDS", 3600)
        self.reaper_mode = os.getenv("TEMP_REAPER_MODE", "celery").strip().lower()
        self.deletion_scheduler = os.getenv("TEMP_DELETION_SCHEDULER", "thread").strip().lower()

        # Upload policy, enforced by the HTTP layer before calling the core
        self.max_file_size = _int_setting("MAX_FILE_SIZE", 100_000_000)
        self.allowed_file_types = _split_list(os.getenv("ALLOWED_FILE_TYPES"))

    @property
    def normalized_provider(self) -> str:
        """
        Canonical provider name.

        Raises:
            StorageConfigurationError: If the provider is unknown
        """
        provider = PROVIDER_ALIASES.get(self.provider)
        if provider is None:
            raise StorageConfigurationError(
                f"Unknown storage provider: {self.provider}. "
                f"Supported: '{PROVIDER_LOCAL}', '{PROVIDER_OBJECT_STORE}', '{PROVIDER_CDN}'"
            )
        return provider

    def missing_settings(self) -> List[str]:
        """List environment variables the selected provider requires but lacks."""
        provider = self.normalized_provider
        required = {}

        if provider == PROVIDER_LOCAL:
            required = {"UPLOAD_DIR": self.upload_dir, "TEMP_DIR": self.temp_dir}
        elif provider == PROVIDER_OBJECT_STORE:
            required = {"GCS_BUCKET_NAME": self.gcs_bucket_name}
        elif provider == PROVIDER_CDN:
            required = {
                "CLOUDINARY_CLOUD_NAME": self.cloudinary_cloud_name,
                "CLOUDINARY_API_KEY": self.cloudinary_api_key,
                "CLOUDINARY_API_SECRET": self.cloudinary_api_secret,
            }

        return [name for name, value in required.items() if not value or not str(value).strip()]

    def validate(self) -> None:
        """
        Validate settings for the selected provider.

        Raises:
            StorageConfigurationError: If the provider is unknown, a required
                setting is missing or a numeric setting is out of range
        """
        missing = self.missing_settings()
        if missing:
            raise StorageConfigurationError(
                f"Storage provider '{self.normalized_provider}' requires: {', '.join(missing)}"
            )

        for name, value in (
            ("SIGNED_URL_DEFAULT_EXPIRY", self.default_signed_url_expiry),
            ("TEMP_REAPER_INTERVAL", self.reaper_interval_seconds),
            ("TEMP_RETENTION_SECONDS", self.temp_retention_seconds),
        ):
            if value <= 0:
                raise StorageConfigurationError(f"{name} must be positive, got {value}")

        if self.reaper_mode not in ("celery", "thread", "off"):
            raise StorageConfigurationError(
                f"TEMP_REAPER_MODE must be 'celery', 'thread' or 'off', got {self.reaper_mode}"
            )
        if self.deletion_scheduler not in ("thread", "celery"):
            raise StorageConfigurationError(
                f"TEMP_DELETION_SCHEDULER must be 'thread' or 'celery', got {self.deletion_scheduler}"
            )
