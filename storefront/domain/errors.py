"""
Error Handling Module

Defines domain exceptions and error categories for the storage core.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry user-facing messaging and HTTP status codes.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    OBJECT_NOT_FOUND = "object_not_found"
    ACCESS_DENIED = "access_denied"
    LINK_EXPIRED = "link_expired"
    STORAGE_FAILURE = "storage_failure"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    FILE_TOO_LARGE = "file_too_large"
    FILE_TYPE_NOT_ALLOWED = "file_type_not_allowed"
    INVALID_REQUEST = "invalid_request"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.OBJECT_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found or has been deleted.",
        "action": "Check the link or request a new one from your purchases.",
    },
    ErrorCategory.ACCESS_DENIED: {
        "title": "Access Denied",
        "message": "This download link is not valid.",
        "action": "Request a new download link from your purchases.",
    },
    ErrorCategory.LINK_EXPIRED: {
        "title": "Link Expired",
        "message": "This download link has expired.",
        "action": "Request a new download link from your purchases.",
    },
    ErrorCategory.STORAGE_FAILURE: {
        "title": "Storage Error",
        "message": "The file could not be stored or removed.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
    ErrorCategory.STORAGE_UNAVAILABLE: {
        "title": "Storage Unavailable",
        "message": "File storage is not available right now.",
        "action": "Please try again later.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Upload a smaller file.",
    },
    ErrorCategory.FILE_TYPE_NOT_ALLOWED: {
        "title": "File Type Not Allowed",
        "message": "Files of this type cannot be uploaded.",
        "action": "Upload a file in one of the accepted formats.",
    },
    ErrorCategory.INVALID_REQUEST: {
        "title": "Invalid Request",
        "message": "The request is missing required information or contains invalid data.",
        "action": "Please check your input and try again.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class StorageError(DomainError):
    """Base exception for every failure raised by the storage core."""
    pass


class ObjectNotFoundError(StorageError):
    """
    Raised when an object or temp copy is absent but the operation needs it.

    Never raised by delete operations, which treat a missing key as success.
    """

    def __init__(self, key: str, message: Optional[str] = None):
        super().__init__(message or f"Object not found: {key}")
        self.key = key


class StorageFailureError(StorageError):
    """Raised when an I/O or remote call fails during a write or delete."""
    pass


class AccessTokenError(StorageError):
    """
    Raised when a signed access token is malformed, tampered with or expired.

    Attributes:
        reason: One of "malformed", "invalid_signature" or "expired"
    """

    MALFORMED = "malformed"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"

    def __init__(
        self,
        reason: str,
        message: Optional[str] = None,
        original_error: Exception = None,
    ):
        super().__init__(message or f"Access token rejected: {reason}", original_error)
        self.reason = reason

    @property
    def is_expired(self) -> bool:
        return self.reason == self.EXPIRED


class StorageConfigurationError(StorageError):
    """
    Raised at start-up when the selected backend is missing required settings.

    This error is fatal: it fails process initialization instead of being
    handled per request.
    """
    pass


class UnsupportedCapabilityError(StorageError):
    """Raised when an optional capability is invoked on a backend without it."""

    def __init__(self, capability: str, provider: str):
        super().__init__(f"Storage provider '{provider}' does not support {capability}")
        self.capability = capability
        self.provider = provider


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    http_status_code = 400

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


class UploadRejectedError(ApplicationError):
    """Raised by the upload policy before any bytes reach the storage core."""

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(category, technical_message, context)
        if category == ErrorCategory.FILE_TOO_LARGE:
            self.http_status_code = 413
        elif category == ErrorCategory.FILE_TYPE_NOT_ALLOWED:
            self.http_status_code = 415
        else:
            self.http_status_code = 400


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    The technical message is never included in the response body.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code


def storage_error_response(error: StorageError) -> tuple[Dict[str, Any], int]:
    """
    Map a storage-core error onto its public response.

    NotFound maps to 404, token failures to 401, everything else to a
    5xx response without internal detail.
    """
    if isinstance(error, ObjectNotFoundError):
        return create_error_response(ErrorCategory.OBJECT_NOT_FOUND, str(error), status_code=404)
    if isinstance(error, AccessTokenError):
        category = ErrorCategory.LINK_EXPIRED if error.is_expired else ErrorCategory.ACCESS_DENIED
        return create_error_response(category, str(error), status_code=401)
    if isinstance(error, (StorageConfigurationError, UnsupportedCapabilityError)):
        return create_error_response(ErrorCategory.STORAGE_UNAVAILABLE, str(error), status_code=503)
    if isinstance(error, StorageFailureError):
        return create_error_response(ErrorCategory.STORAGE_FAILURE, str(error), status_code=500)
    return create_error_response(ErrorCategory.SYSTEM_ERROR, str(error), status_code=500)
