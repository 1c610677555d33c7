"""
Local Filesystem Storage Backend

Concrete implementation of StorageBackend for the local filesystem.
Durable objects live under an upload root served at a public prefix;
signed URLs are backed by temporary copies under a separate temp root,
guarded by an HMAC token and removed by a deferred timer or the reaper.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from storefront.domain.errors import (
    AccessTokenError,
    ObjectNotFoundError,
    StorageFailureError,
)
from storefront.domain.file_storage.entities import (
    AccessTokenClaims,
    ReapStats,
    SignedUrlOptions,
    StoredObject,
    resolve_mime_type,
)
from storefront.domain.file_storage.services import (
    DEFAULT_RETENTION_SECONDS,
    TempFileReaper,
    remove_file_if_present,
)
from storefront.domain.file_storage.signed_url_service import SignedUrlService
from storefront.domain.file_storage.storage_repository import StorageBackend
from storefront.domain.file_storage.value_objects import InvalidStorageKeyError, StorageKey
from storefront.infrastructure.deletion_scheduler import (
    DeletionScheduler,
    ThreadingDeletionScheduler,
)

logger = logging.getLogger(__name__)

PARTIAL_PREFIX = ".partial-"


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem implementation of StorageBackend.

    Writes go to a hidden partial file in the destination directory and are
    renamed into place once complete, so a key never names a half-written
    file. No locks are taken: keys are unique per call and deletes are
    idempotent.

    Attributes:
        upload_dir: Root directory for durable objects
        temp_dir: Root directory for temporary signed-URL copies
    """

    provider = "local"
    supports_temp_cleanup = True

    def __init__(
        self,
        upload_dir: str,
        temp_dir: str,
        signed_url_service: SignedUrlService,
        uploads_url_prefix: str = "/uploads",
        temp_url_prefix: str = "/temp",
        retention_seconds: int = DEFAULT_RETENTION_SECONDS,
        deletion_scheduler: Optional[DeletionScheduler] = None,
    ):
        """
        Initialize the local storage backend.

        Args:
            upload_dir: Directory for durable objects (created if absent)
            temp_dir: Directory for temporary copies (created if absent)
            signed_url_service: Issuer used to sign temp-copy URLs
            uploads_url_prefix: Public static-serving prefix for durable objects
            temp_url_prefix: Public prefix for token-guarded temp copies
            retention_seconds: Age after which the reaper removes a temp copy
            deletion_scheduler: Deferred deletion producer; defaults to
                in-process threading timers
        """
        self.upload_dir = Path(upload_dir).resolve()
        self.temp_dir = Path(temp_dir).resolve()
        self.signed_url_service = signed_url_service
        self.uploads_url_prefix = "/" + uploads_url_prefix.strip("/")
        self.temp_url_prefix = "/" + temp_url_prefix.strip("/")
        self.reaper = TempFileReaper(self.temp_dir, retention_seconds)
        self.deletion_scheduler = deletion_scheduler or ThreadingDeletionScheduler(self.delete_temp_copy)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """
        Ensure both storage roots exist.

        Raises:
            StorageFailureError: If a directory cannot be created
        """
        for directory in (self.upload_dir, self.temp_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageFailureError(
                    f"Failed to create storage directory: {directory}", e
                ) from e

    @staticmethod
    def _resolve(root: Path, key: str) -> Path:
        """
        Map a key to a path directly under root.

        Raises:
            ObjectNotFoundError: If the key is malformed or escapes root
        """
        try:
            StorageKey(key)
        except InvalidStorageKeyError as e:
            raise ObjectNotFoundError(str(key)) from e

        path = root / key
        if path.parent != root:
            raise ObjectNotFoundError(key)
        return path

    @staticmethod
    def _write_atomic(directory: Path, target: Path, data: bytes) -> None:
        fd, partial_path = tempfile.mkstemp(dir=directory, prefix=PARTIAL_PREFIX)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(partial_path, target)
        except BaseException:
            remove_file_if_present(partial_path)
            raise

    @staticmethod
    def _copy_atomic(directory: Path, source: Path, target: Path) -> None:
        fd, partial_path = tempfile.mkstemp(dir=directory, prefix=PARTIAL_PREFIX)
        os.close(fd)
        try:
            shutil.copyfile(source, partial_path)
            os.replace(partial_path, target)
        except BaseException:
            remove_file_if_present(partial_path)
            raise

    # StorageBackend interface methods

    def upload(self, data: bytes, original_name: str, mime_type: Optional[str]) -> StoredObject:
        key = StorageKey.generate(original_name)
        target = self.upload_dir / key.value

        self._ensure_directories()
        try:
            self._write_atomic(self.upload_dir, target, bytes(data))
            size = target.stat().st_size
        except OSError as e:
            logger.error(f"Failed to store upload {original_name!r} as {key}: {e}")
            raise StorageFailureError(f"Failed to store file: {key}", e) from e

        stored = StoredObject(
            key=key.value,
            url=f"{self.uploads_url_prefix}/{key.value}",
            size=size,
            mime_type=resolve_mime_type(mime_type, key.extension),
        )
        logger.info(f"Stored {stored.key} ({stored.size} bytes, {stored.mime_type})")
        return stored

    def delete(self, key: str) -> None:
        try:
            path = self._resolve(self.upload_dir, key)
        except ObjectNotFoundError:
            logger.debug(f"Delete of malformed key {key!r} treated as already satisfied")
            return

        try:
            if remove_file_if_present(path):
                logger.info(f"Deleted {key}")
            else:
                logger.debug(f"Delete of missing key {key} treated as already satisfied")
        except OSError as e:
            raise StorageFailureError(f"Failed to delete file: {key}", e) from e

    def signed_url(self, key: str, options: Optional[SignedUrlOptions] = None) -> str:
        """
        Create a temporary copy of an object and return a token-guarded URL.

        1. Verify the source object exists
        2. Generate a new key for the copy
        3. Copy the bytes into the temp root
        4. Schedule deletion of the copy after ``expires_in`` seconds
        5. Return a URL to the copy carrying a signed token with the same expiry
        """
        options = options or SignedUrlOptions()
        source = self._resolve(self.upload_dir, key)
        if not source.is_file():
            raise ObjectNotFoundError(key)

        temp_key = StorageKey.generate(key)
        target = self.temp_dir / temp_key.value

        self._ensure_directories()
        try:
            self._copy_atomic(self.temp_dir, source, target)
        except FileNotFoundError as e:
            # Source deleted between the existence check and the copy
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageFailureError(f"Failed to create temporary copy of {key}", e) from e

        self.deletion_scheduler.schedule(temp_key.value, options.expires_in)

        token, expires_at = self.signed_url_service.issue_token(
            temp_key.value,
            options.expires_in,
            content_type=options.content_type,
            content_disposition=options.content_disposition,
        )
        logger.info(f"Issued temp copy {temp_key} of {key} valid until {expires_at.isoformat()}")
        return self.signed_url_service.build_url(self.temp_url_prefix, temp_key.value, token)

    def exists(self, key: str) -> bool:
        try:
            return self._resolve(self.upload_dir, key).is_file()
        except (ObjectNotFoundError, OSError):
            return False

    def read(self, key: str) -> bytes:
        path = self._resolve(self.upload_dir, key)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageFailureError(f"Failed to read file: {key}", e) from e

    def describe(self) -> dict:
        info = super().describe()
        info.update({
            "upload_dir": str(self.upload_dir),
            "temp_dir": str(self.temp_dir),
            "retention_seconds": self.reaper.retention_seconds,
        })
        return info

    # Temp copy capabilities

    def cleanup_temp_files(self) -> ReapStats:
        return self.reaper.sweep()

    def delete_temp_copy(self, temp_key: str) -> bool:
        """
        Delete one temp copy, treating a missing copy as success.

        Returns:
            True if this call removed the copy, False if it was already gone

        Raises:
            StorageFailureError: On any failure other than the copy being absent
        """
        try:
            path = self._resolve(self.temp_dir, temp_key)
        except ObjectNotFoundError:
            return False

        try:
            removed = remove_file_if_present(path)
        except OSError as e:
            raise StorageFailureError(f"Failed to delete temp copy: {temp_key}", e) from e

        if removed:
            logger.debug(f"Deleted temp copy {temp_key}")
        return removed

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        return self.signed_url_service.verify_token(token)

    def open_temp_copy(self, temp_key: str, token: str) -> Tuple[Path, AccessTokenClaims]:
        """
        Authorize access to a temp copy and return its path.

        Raises:
            AccessTokenError: If the token is invalid, expired or bound to another key
            ObjectNotFoundError: If the copy no longer exists
        """
        claims = self.verify_access_token(token)
        if claims.storage_key != temp_key:
            raise AccessTokenError(
                AccessTokenError.INVALID_SIGNATURE,
                f"Access token is not valid for {temp_key}",
            )

        path = self._resolve(self.temp_dir, temp_key)
        if not path.is_file():
            raise ObjectNotFoundError(temp_key)
        return path, claims
