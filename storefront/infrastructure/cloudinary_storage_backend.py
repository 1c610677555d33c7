"""
Cloudinary Storage Backend

Concrete implementation of StorageBackend for the Cloudinary managed CDN.
Content is sent inline as a base64 data URI and signed URLs use
Cloudinary's private download URLs. Every object is stored as a ``raw``
resource so the storage key doubles as the public id, extension included.
"""

import base64
import logging
import time
from typing import Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
import urllib3
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import NotFound as CloudinaryNotFound

from storefront.domain.errors import ObjectNotFoundError, StorageFailureError
from storefront.domain.file_storage.entities import (
    SignedUrlOptions,
    StoredObject,
    resolve_mime_type,
)
from storefront.domain.file_storage.storage_repository import StorageBackend
from storefront.domain.file_storage.value_objects import InvalidStorageKeyError, StorageKey

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "raw"

READ_URL_LIFETIME = 60


class CloudinaryStorageBackend(StorageBackend):
    """
    Cloudinary implementation of StorageBackend.

    Cloudinary has no per-request content type override for private
    downloads; a requested content type is ignored and only the attachment
    disposition is passed through.
    """

    provider = "cdn"

    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        """
        Configure the Cloudinary SDK for this process.

        Args:
            cloud_name: Cloudinary cloud name
            api_key: API key
            api_secret: API secret used to sign uploads and download URLs
        """
        if not cloud_name or not api_key or not api_secret:
            raise ValueError("cloud_name, api_key and api_secret are required")

        self.cloud_name = cloud_name
        self.http = urllib3.PoolManager()
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

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
        encoded = base64.b64encode(bytes(data)).decode("ascii")
        data_uri = f"data:{content_type};base64,{encoded}"

        try:
            result = cloudinary.uploader.upload(
                data_uri,
                public_id=key.value,
                resource_type=RESOURCE_TYPE,
                overwrite=False,
            )
        except CloudinaryError as e:
            logger.error(f"Cloudinary upload of {key} failed: {e}")
            raise StorageFailureError(f"Failed to upload file to Cloudinary: {key}", e) from e
        except Exception as e:
            logger.error(f"Unexpected error uploading {key} to Cloudinary: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to upload file to Cloudinary: {key}", e) from e

        logger.info(f"Stored {key} on Cloudinary ({result.get('bytes', len(data))} bytes)")
        return StoredObject(
            key=result.get("public_id", key.value),
            url=result["secure_url"],
            size=int(result.get("bytes", len(data))),
            mime_type=content_type,
        )

    def delete(self, key: str) -> None:
        if not self._is_valid_key(key):
            return

        try:
            result = cloudinary.uploader.destroy(key, resource_type=RESOURCE_TYPE, invalidate=True)
        except CloudinaryError as e:
            raise StorageFailureError(f"Failed to delete file from Cloudinary: {key}", e) from e
        except Exception as e:
            logger.error(f"Unexpected error deleting {key} from Cloudinary: {e}", exc_info=True)
            raise StorageFailureError(f"Failed to delete file from Cloudinary: {key}", e) from e

        outcome = (result or {}).get("result")
        if outcome == "ok":
            logger.info(f"Deleted {key} from Cloudinary")
        elif outcome == "not found":
            logger.debug(f"Delete of missing resource {key} treated as already satisfied")
        else:
            raise StorageFailureError(f"Cloudinary refused to delete {key}: {outcome}")

    def signed_url(self, key: str, options: Optional[SignedUrlOptions] = None) -> str:
        options = options or SignedUrlOptions()
        if not self.exists(key):
            raise ObjectNotFoundError(key)

        if options.content_type:
            logger.debug(f"Cloudinary ignores content type override for {key}")

        expires_at = int(time.time()) + options.expires_in
        try:
            return cloudinary.utils.private_download_url(
                key,
                "",
                resource_type=RESOURCE_TYPE,
                expires_at=expires_at,
                attachment=options.wants_attachment,
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to generate download URL for {key}", e) from e

    def exists(self, key: str) -> bool:
        if not self._is_valid_key(key):
            return False
        try:
            cloudinary.api.resource(key, resource_type=RESOURCE_TYPE)
            return True
        except CloudinaryNotFound:
            return False
        except Exception as e:
            raise StorageFailureError(f"Failed to look up {key} on Cloudinary", e) from e

    def read(self, key: str) -> bytes:
        url = self.signed_url(key, SignedUrlOptions(expires_in=READ_URL_LIFETIME))
        try:
            response = self.http.request("GET", url)
        except Exception as e:
            raise StorageFailureError(f"Failed to download {key} from Cloudinary", e) from e

        if response.status == 404:
            raise ObjectNotFoundError(key)
        if response.status != 200:
            raise StorageFailureError(
                f"Cloudinary download of {key} failed with status {response.status}"
            )
        return response.data

    def describe(self) -> dict:
        info = super().describe()
        info["cloud_name"] = self.cloud_name
        return info
