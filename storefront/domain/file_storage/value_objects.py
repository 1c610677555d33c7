"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

import hashlib
import os
import secrets
import time
from dataclasses import dataclass
from typing import Optional


class InvalidStorageKeyError(ValueError):
    """Raised when a storage key is empty or could escape its storage root."""
    pass


@dataclass(frozen=True)
class StorageKey:
    """
    Value object representing the key of one stored object.

    Keys follow ``{timestampMillis}-{hash}{extension}``. They are generated
    without consulting the backend, so two uploads never coordinate, and
    they are used verbatim as file names, blob names and public ids.
    """
    value: str

    def __post_init__(self):
        if not self._is_valid():
            raise InvalidStorageKeyError(f"Invalid storage key: {self.value!r}")

    def _is_valid(self) -> bool:
        """
        Validate storage key.

        Requirements:
        - Must be a non-empty string
        - Must not contain path separators or NUL bytes
        - Must not be a relative path component ('.' or '..')
        """
        if not self.value or not isinstance(self.value, str):
            return False

        if self.value in (".", ".."):
            return False

        return not any(c in self.value for c in ("/", "\\", "\x00"))

    @property
    def extension(self) -> str:
        """Extension including the dot, or an empty string."""
        return os.path.splitext(self.value)[1]

    @classmethod
    def generate(cls, original_name: str, timestamp_ns: Optional[int] = None) -> 'StorageKey':
        """
        Derive a new key from an original filename and the current time.

        The hash input mixes the original name, a nanosecond timestamp and
        a random salt, so keys stay unique for identical names within the
        same millisecond.

        Args:
            original_name: Client-supplied filename (or an existing key)
            timestamp_ns: Optional timestamp override in nanoseconds

        Returns:
            New StorageKey instance
        """
        if timestamp_ns is None:
            timestamp_ns = time.time_ns()

        timestamp_ms = timestamp_ns // 1_000_000
        salt = secrets.token_hex(8)
        digest = hashlib.md5(
            f"{original_name}{timestamp_ns}{salt}".encode("utf-8")
        ).hexdigest()

        return cls(f"{timestamp_ms}-{digest}{_safe_extension(original_name)}")

    def __str__(self) -> str:
        return self.value


def _safe_extension(original_name: str) -> str:
    ext = os.path.splitext(os.path.basename(original_name or ""))[1].lower()
    # Only keep extensions that cannot smuggle separators into the key
    if not ext or len(ext) > 16 or not (ext[1:].isascii() and ext[1:].isalnum()):
        return ""
    return ext
