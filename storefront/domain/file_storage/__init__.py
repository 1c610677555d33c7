"""
File Storage Domain

Storage keys, the backend contract, signed access tokens and temp-copy reaping.
"""

from .entities import (
    AccessTokenClaims,
    ReapStats,
    SignedUrlOptions,
    StoredObject,
)
from .services import TempFileReaper, remove_file_if_present
from .signed_url_service import SignedUrlService
from .storage_repository import StorageBackend
from .value_objects import InvalidStorageKeyError, StorageKey

__all__ = [
    "AccessTokenClaims",
    "InvalidStorageKeyError",
    "ReapStats",
    "SignedUrlOptions",
    "SignedUrlService",
    "StorageBackend",
    "StorageKey",
    "StoredObject",
    "TempFileReaper",
    "remove_file_if_present",
]
