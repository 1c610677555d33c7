"""
Unified Storage Service

The single entry point collaborators use for file storage. Wraps the
backend chosen at start-up and exposes the same operations whichever
backend is active.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from storefront.domain.errors import UnsupportedCapabilityError
from storefront.domain.file_storage.entities import (
    DEFAULT_SIGNED_URL_EXPIRY,
    AccessTokenClaims,
    ReapStats,
    SignedUrlOptions,
    StoredObject,
)
from storefront.domain.file_storage.storage_repository import StorageBackend

logger = logging.getLogger(__name__)


class StorageService:
    """
    Storage facade bound to one backend for the process lifetime.

    Temp-copy operations are an optional capability: callers check
    ``supports_temp_cleanup`` before calling cleanup_temp_files().
    """

    def __init__(self, backend: StorageBackend, default_expiry: int = DEFAULT_SIGNED_URL_EXPIRY):
        """
        Initialize storage service.

        Args:
            backend: Active storage backend
            default_expiry: Signed URL lifetime used when the caller gives none
        """
        self.backend = backend
        self.default_expiry = default_expiry

    @property
    def provider(self) -> str:
        return self.backend.provider

    @property
    def supports_temp_cleanup(self) -> bool:
        return self.backend.supports_temp_cleanup

    def upload(self, data: bytes, original_name: str, mime_type: Optional[str] = None) -> StoredObject:
        """
        Store a file.

        Args:
            data: Complete file content
            original_name: Client-supplied filename
            mime_type: Declared MIME type

        Returns:
            StoredObject with key, url, size and mime_type

        Raises:
            StorageFailureError: If the write fails
        """
        return self.backend.upload(data, original_name, mime_type)

    def delete(self, key: str) -> None:
        """
        Delete a file. Deleting a missing key succeeds.

        Raises:
            StorageFailureError: If deletion fails for any other reason
        """
        self.backend.delete(key)

    def signed_url(
        self,
        key: str,
        expires_in: Optional[int] = None,
        content_type: Optional[str] = None,
        content_disposition: Optional[str] = None,
    ) -> str:
        """
        Get a time-limited URL for an existing file.

        Args:
            key: Storage key
            expires_in: Lifetime in seconds (default: configured expiry)
            content_type: Content type to serve the download with
            content_disposition: Content disposition to serve the download with

        Returns:
            Signed URL

        Raises:
            ObjectNotFoundError: If the key does not exist
            ValueError: If expires_in is not a positive integer
        """
        options = SignedUrlOptions(
            expires_in=self.default_expiry if expires_in is None else expires_in,
            content_type=content_type,
            content_disposition=content_disposition,
        )
        url = self.backend.signed_url(key, options)
        logger.info(f"Issued {options.expires_in}s {self.provider} link for {key}")
        return url

    def exists(self, key: str) -> bool:
        return self.backend.exists(key)

    def read(self, key: str) -> bytes:
        return self.backend.read(key)

    def cleanup_temp_files(self) -> ReapStats:
        """
        Sweep stale temporary copies.

        Raises:
            UnsupportedCapabilityError: If the backend keeps no temp copies
        """
        if not self.supports_temp_cleanup:
            raise UnsupportedCapabilityError("temp file cleanup", self.provider)
        return self.backend.cleanup_temp_files()

    def delete_temp_copy(self, temp_key: str) -> bool:
        return self.backend.delete_temp_copy(temp_key)

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verify a signed access token and return its claims.

        Raises:
            AccessTokenError: If the token is invalid or expired
            UnsupportedCapabilityError: If the backend signs URLs natively
        """
        return self.backend.verify_access_token(token)

    def open_temp_copy(self, temp_key: str, token: str) -> Tuple[Path, AccessTokenClaims]:
        """
        Authorize a token for a temp copy and return the copy's path.

        Raises:
            AccessTokenError: If the token is invalid, expired or for another key
            ObjectNotFoundError: If the copy was already removed
            UnsupportedCapabilityError: If the backend keeps no temp copies
        """
        if not self.supports_temp_cleanup:
            raise UnsupportedCapabilityError("temp copies", self.provider)
        return self.backend.open_temp_copy(temp_key, token)

    def get_storage_info(self) -> dict:
        """
        Get information about current storage configuration.

        Returns:
            Dictionary with storage information
        """
        info = self.backend.describe()
        info["default_signed_url_expiry"] = self.default_expiry
        return info
