"""
File Storage Entities

Domain entities for stored objects, signed access and temp-copy sweeps.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

DEFAULT_SIGNED_URL_EXPIRY = 3600

DEFAULT_MIME_TYPE = "application/octet-stream"

# Extension-based fallback when the caller does not provide a MIME type
MIME_TYPES_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".epub": "application/epub+zip",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".txt": "text/plain",
}


def resolve_mime_type(mime_type: Optional[str], extension: str) -> str:
    """Return the caller's MIME type, or infer one from the extension."""
    if mime_type and mime_type.strip():
        return mime_type.strip()
    return MIME_TYPES_BY_EXTENSION.get(extension.lower(), DEFAULT_MIME_TYPE)


@dataclass(frozen=True)
class StoredObject:
    """Result of a successful upload."""
    key: str
    url: str
    size: int
    mime_type: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "url": self.url,
            "size": self.size,
            "mime_type": self.mime_type,
        }


@dataclass(frozen=True)
class SignedUrlOptions:
    """
    Options for a time-limited access URL.

    Attributes:
        expires_in: Lifetime of the URL in seconds
        content_type: Content type the download should be served with
        content_disposition: Content disposition header value, e.g. 'attachment'
    """
    expires_in: int = DEFAULT_SIGNED_URL_EXPIRY
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.expires_in, bool) or not isinstance(self.expires_in, int):
            raise ValueError(f"expires_in must be an integer, got {self.expires_in!r}")
        if self.expires_in <= 0:
            raise ValueError(f"expires_in must be positive, got {self.expires_in}")

    @property
    def wants_attachment(self) -> bool:
        return bool(self.content_disposition) and self.content_disposition.lower().startswith("attachment")


@dataclass(frozen=True)
class AccessTokenClaims:
    """Verified content of a signed access token."""
    storage_key: str
    expires_at: datetime
    content_type: Optional[str] = None
    content_disposition: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "storage_key": self.storage_key,
            "content_type": self.content_type,
            "content_disposition": self.content_disposition,
            "expires_at": self.expires_at.isoformat(),
        }


@dataclass
class ReapStats:
    """Outcome of one temp-directory sweep."""
    scanned: int = 0
    removed: int = 0
    already_gone: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "removed": self.removed,
            "already_gone": self.already_gone,
            "failed": self.failed,
            "errors": list(self.errors),
        }
