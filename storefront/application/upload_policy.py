"""
Upload Policy

Size and type limits checked by the HTTP layer before a file is handed to
the storage core. The core itself accepts any bytes it is given.
"""

import logging
from typing import Iterable, Optional

from storefront.domain.errors import ErrorCategory, UploadRejectedError

logger = logging.getLogger(__name__)


class UploadPolicy:
    """
    Upload limits for product files.

    Attributes:
        max_file_size: Largest accepted upload in bytes
        allowed_types: Accepted MIME types; empty accepts everything
    """

    def __init__(self, max_file_size: int, allowed_types: Optional[Iterable[str]] = None):
        if max_file_size <= 0:
            raise ValueError("max_file_size must be positive")
        self.max_file_size = max_file_size
        self.allowed_types = frozenset(t.strip().lower() for t in (allowed_types or ()) if t.strip())

    @classmethod
    def from_config(cls, config) -> "UploadPolicy":
        return cls(config.max_file_size, config.allowed_file_types)

    def is_type_allowed(self, mime_type: Optional[str]) -> bool:
        if not self.allowed_types:
            return True
        if not mime_type:
            return False
        # Ignore parameters such as "; charset=utf-8"
        base_type = mime_type.split(";", 1)[0].strip().lower()
        return base_type in self.allowed_types

    def check(self, size: int, mime_type: Optional[str]) -> None:
        """
        Validate an upload against the policy.

        Raises:
            UploadRejectedError: FILE_TOO_LARGE or FILE_TYPE_NOT_ALLOWED
        """
        if size > self.max_file_size:
            logger.info(f"Rejected upload of {size} bytes (limit {self.max_file_size})")
            raise UploadRejectedError(
                ErrorCategory.FILE_TOO_LARGE,
                f"Upload of {size} bytes exceeds limit of {self.max_file_size}",
                {"size": size, "max_file_size": self.max_file_size},
            )

        if not self.is_type_allowed(mime_type):
            logger.info(f"Rejected upload with type {mime_type!r}")
            raise UploadRejectedError(
                ErrorCategory.FILE_TYPE_NOT_ALLOWED,
                f"MIME type {mime_type!r} is not allowed",
                {"mime_type": mime_type},
            )
