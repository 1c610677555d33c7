"""
Google Cloud Storage Backend

Concrete implementation of StorageBackend for Google Cloud Storage.
Uploads and deletes map directly onto blob operations and signed URLs use
GCS v4 signing, so this backend keeps no local state and needs no cleanup.
"""

import logging
from datetime import timedelta
from typing import Optional

from google.cloud.exceptions import GoogleCloudError, NotFound
from google.cloud import storage

from storefront.domain.errors import ObjectNotFoundError, StorageFailureError
from storefront.domain.file_storage.entities import (
    SignedUrlOptions,
    StoredObject,
    resolve_mime_type,
)
from storefront.domain.file_storage.storage_repository import StorageBackend
from storefront.domain.file_storage.value_objects import InvalidStorageKeyError, StorageKey

logger = logging.getLogger(__name__)


class GCSStorageBackend(StorageBackend):
    """
    Google Cloud Storage implementation of StorageBackend.

    Thread Safety:
        The GCS client handles concurrent operations safely; blob objects
        are created per call.

    Attributes:
        bucket_name: Name of the GCS bucket for object storage
        client: Google Cloud Storage client instance
        bucket: GCS bucket object
    """

    provider = "object-store"

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None):
        """
        Initialize the GCS storage backend.

        Args:
            bucket_name: Name of the GCS bucket to use for storage
            client: Preconfigured client; application default credentials
                are used when omitted

        Raises:
            ValueError: If bucket_name is empty
        """
        if not bucket_name or not bucket_name.strip():
            raise ValueError("bucket_name cannot be empty")

        self.bucket_name = bucket_name
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)

    @staticmethod
    def _is_valid_key(key: str) -> bool:
        try:
            StorageKey(key)
            return True
        except InvalidStorageKeyError:
            return False

    def upload(self, data: bytes, original_name: str, mime_type: Optional[str]) -> StoredObject:
        key = StorageKey.generate(original_name)
        content_type = resolve_mime_type(mime_type, key.extension)
        payload = bytes(data)

        try:
            blob = self.bucket.blob(key.value)
            # Single-request upload: the object only appears once fully received
            blob.upload_from_string(payload, content_type=content_type)
        except GoogleCloudError as e:
            logger.error(f"GCS upload of {key} to {self.bucket_name} failed: {e}")
            raise StorageFailureError(f"Failed to upload file to GCS: {key}", e) from e
        except Exception as e:
            logger.error(f"Unexpected error uploading {key} to GCS: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to upload file to GCS: {key}", e) from e

        logger.info(f"Stored {key} in gs://{self.bucket_name} ({len(payload)} bytes)")
        return StoredObject(
            key=key.value,
            url=blob.public_url,
            size=len(payload),
            mime_type=content_type,
        )

    def delete(self, key: str) -> None:
        if not self._is_valid_key(key):
            return

        try:
            self.bucket.blob(key).delete()
            logger.info(f"Deleted {key} from gs://{self.bucket_name}")
        except NotFound:
            logger.debug(f"Delete of missing blob {key} treated as already satisfied")
        except GoogleCloudError as e:
            raise StorageFailureError(f"Failed to delete file from GCS: {key}", e) from e
        except Exception as e:
            logger.error(f"Unexpected error deleting {key} from GCS: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to delete file from GCS: {key}", e) from e

    def signed_url(self, key: str, options: Optional[SignedUrlOptions] = None) -> str:
        options = options or SignedUrlOptions()
        if not self._is_valid_key(key):
            raise ObjectNotFoundError(key)

        try:
            blob = self.bucket.blob(key)
            if not blob.exists():
                raise ObjectNotFoundError(key)

            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=options.expires_in),
                method="GET",
                response_type=options.content_type,
                response_disposition=options.content_disposition,
            )
        except ObjectNotFoundError:
            raise
        except Exception as e:
            # Signing needs a private key; ADC user credentials raise AttributeError
            raise StorageFailureError(f"Failed to generate signed URL for {key}", e) from e

    def exists(self, key: str) -> bool:
        if not self._is_valid_key(key):
            return False
        try:
            return self.bucket.blob(key).exists()
        except Exception as e:
            raise StorageFailureError(f"Failed to look up {key} in GCS", e) from e

    def read(self, key: str) -> bytes:
        if not self._is_valid_key(key):
            raise ObjectNotFoundError(key)
        try:
            return self.bucket.blob(key).download_as_bytes()
        except NotFound as e:
            raise ObjectNotFoundError(key) from e
        except GoogleCloudError as e:
            raise StorageFailureError(f"Failed to download file from GCS: {key}", e) from e
        except Exception as e:
            logger.error(f"Unexpected error downloading {key} from GCS: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to download file from GCS: {key}", e) from e

    def describe(self) -> dict:
        info = super().describe()
        info["bucket"] = self.bucket_name
        return info
