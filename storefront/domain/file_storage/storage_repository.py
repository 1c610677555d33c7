"""
Storage Backend Interface

Abstract contract for physical object storage. The domain and application
layers depend on this interface only; concrete backends (local filesystem,
Google Cloud Storage, Cloudinary) live in the infrastructure layer and are
selected once at process start by the storage factory.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple

from storefront.domain.errors import UnsupportedCapabilityError

from .entities import AccessTokenClaims, ReapStats, SignedUrlOptions, StoredObject


class StorageBackend(ABC):
    """
    Unified interface for object storage operations.

    Contract Guarantees:
    - upload() is atomic from the caller's perspective: the full buffer is
      written before the object is visible under its key
    - delete() is idempotent: a missing key is success
    - signed_url() raises ObjectNotFoundError for a missing key
    - All other failures surface as StorageFailureError

    Optional Capabilities:
    - Backends keeping transient local copies set ``supports_temp_cleanup``
      and implement cleanup_temp_files(), delete_temp_copy(),
      verify_access_token() and open_temp_copy(). Callers probe the flag
      instead of the type.

    Thread Safety:
    - Implementations must tolerate concurrent uploads of sibling keys and
      concurrent deletes of the same key without locking
    """

    provider: str = "abstract"
    supports_temp_cleanup: bool = False

    @abstractmethod
    def upload(self, data: bytes, original_name: str, mime_type: Optional[str]) -> StoredObject:
        """
        Store a complete buffer under a freshly generated key.

        Args:
            data: Full object content
            original_name: Client-supplied filename, used for the key extension
            mime_type: Declared MIME type; inferred from the extension when empty

        Returns:
            StoredObject with key, canonical URL, size and MIME type

        Raises:
            StorageFailureError: If the object could not be written
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Delete an object.

        Args:
            key: Storage key returned by upload()

        Raises:
            StorageFailureError: On any failure other than the key being absent
        """
        pass  # pragma: no cover

    @abstractmethod
    def signed_url(self, key: str, options: Optional[SignedUrlOptions] = None) -> str:
        """
        Produce a time-limited access URL for an existing object.

        Args:
            key: Storage key returned by upload()
            options: Expiry and response header overrides

        Returns:
            URL string valid for ``options.expires_in`` seconds

        Raises:
            ObjectNotFoundError: If the key does not resolve to an object now
            StorageFailureError: If the URL could not be produced
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Never raises for malformed keys; they simply do not exist.

        Raises:
            StorageFailureError: If a remote backend cannot be reached
        """
        pass  # pragma: no cover

    @abstractmethod
    def read(self, key: str) -> bytes:
        """
        Return the full content of an object.

        Raises:
            ObjectNotFoundError: If the key does not resolve to an object
            StorageFailureError: If the content could not be fetched
        """
        pass  # pragma: no cover

    def describe(self) -> dict:
        """Return non-secret details about this backend for health reporting."""
        return {
            "provider": self.provider,
            "supports_temp_cleanup": self.supports_temp_cleanup,
        }

    # Optional capabilities

    def cleanup_temp_files(self) -> ReapStats:
        raise UnsupportedCapabilityError("temp file cleanup", self.provider)

    def delete_temp_copy(self, temp_key: str) -> bool:
        raise UnsupportedCapabilityError("temp copies", self.provider)

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        raise UnsupportedCapabilityError("access token verification", self.provider)

    def open_temp_copy(self, temp_key: str, token: str) -> Tuple[Path, AccessTokenClaims]:
        raise UnsupportedCapabilityError("temp copies", self.provider)
