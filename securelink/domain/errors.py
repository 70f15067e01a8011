"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions can have infrastructure concerns like logging.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    INVALID_REQUEST = "invalid_request"
    SYSTEM_ERROR = "system_error"
    FILE_NOT_FOUND = "file_not_found"
    FILE_TOO_LARGE = "file_too_large"
    FILE_TYPE_NOT_ALLOWED = "file_type_not_allowed"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    LINK_GENERATION_FAILED = "link_generation_failed"
    SECURE_LINK_NOT_FOUND = "secure_link_not_found"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
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
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file could not be found or has been deleted.",
        "action": "Refresh the gallery and pick the file again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Compress the file or upload a smaller one.",
    },
    ErrorCategory.FILE_TYPE_NOT_ALLOWED: {
        "title": "File Type Not Allowed",
        "message": "Files of this type cannot be uploaded.",
        "action": "Upload an image, PDF, office document, text file or zip archive.",
    },
    ErrorCategory.STORAGE_UNAVAILABLE: {
        "title": "Storage Unavailable",
        "message": "The file storage service could not be reached.",
        "action": "Please try again in a few moments.",
    },
    ErrorCategory.LINK_GENERATION_FAILED: {
        "title": "Link Generation Failed",
        "message": "A download link could not be generated for this file.",
        "action": "Make sure the file still exists and try again.",
    },
    ErrorCategory.SECURE_LINK_NOT_FOUND: {
        "title": "Link Not Available",
        "message": "This link is invalid or has expired.",
        "action": "Ask the owner of the file for a new link.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
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


class ObjectNotFoundError(DomainError):
    """
    Raised when a backing object does not exist in the blob store.

    Issuance aborts with this error and no mapping is created.
    """

    def __init__(self, bucket_name: str, object_key: str, original_error: Exception = None):
        super().__init__(f"Object not found: {bucket_name}/{object_key}", original_error)
        self.bucket_name = bucket_name
        self.object_key = object_key


class StorageUnavailableError(DomainError):
    """
    Raised when the blob store could not be reached or timed out.

    Never retried by the core; propagated to the caller.
    """
    pass


class InvalidSecurePathError(DomainError):
    """Raised when a secure path string cannot be parsed into its three segments."""
    pass


class FailedToGenerateUrlError(DomainError):
    """Raised by the file access layer when no URL could be produced for a file."""
    pass


class FileValidationError(DomainError):
    """
    Raised when an upload is rejected before reaching storage.

    Carries the error category so the API can pick the right message.
    """

    def __init__(self, message: str, category: ErrorCategory):
        super().__init__(message)
        self.category = category


# ============================================================================
# Application Layer Exceptions (Can have infrastructure concerns)
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    This is an application-layer concern that bridges domain errors
    with user-facing error messages and HTTP responses.

    Note: Logging is handled by application layer event handlers,
    not directly in this exception class.
    """

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


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    The technical message is never part of the body; it is only kept on the
    error object for callers that want to log it.

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
