"""Custom exception hierarchy for Lockbox."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    NOT_FOUND = "NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    GPGKEY_NOT_FOUND = "GPGKEY_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LockboxException(Exception):
    """
    Base exception for all Lockbox errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details (rendered as the response body)
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and JSON responses."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(LockboxException):
    """Generic lookup failure."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND, details: Optional[dict] = None):
        super().__init__(message, error_code, status_code=404, details=details)


class FolderNotFoundError(NotFoundError):
    """Folder not found, or not visible to the current user."""

    def __init__(self, folder_id: str):
        super().__init__(
            "The folder does not exist.",
            ErrorCode.FOLDER_NOT_FOUND,
            details={"folder_id": folder_id},
        )


class ResourceNotFoundError(NotFoundError):
    """Resource not found, or not visible to the current user."""

    def __init__(self, resource_id: str):
        super().__init__(
            "The resource does not exist.",
            ErrorCode.RESOURCE_NOT_FOUND,
            details={"resource_id": resource_id},
        )


class UserNotFoundError(NotFoundError):
    """User not found in database."""

    def __init__(self, user_id: str):
        super().__init__(
            "The user does not exist.",
            ErrorCode.USER_NOT_FOUND,
            details={"user_id": user_id},
        )


class GpgkeyNotFoundError(NotFoundError):
    """OpenPGP key not found in database."""

    def __init__(self, gpgkey_id: str):
        super().__init__(
            "The OpenPGP key does not exist.",
            ErrorCode.GPGKEY_NOT_FOUND,
            details={"gpgkey_id": gpgkey_id},
        )


class ValidationError(LockboxException):
    """Validation failed for a single user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class CustomValidationError(LockboxException):
    """Validation failed with a field-level error map.

    ``errors`` is nested ``{field: {rule: message}}``; list items are keyed by
    their index, e.g. ``{"metadata_private_keys": {0: {"data": {"_empty": "..."}}}}``.
    """

    def __init__(self, message: str, errors: Dict[Any, Any]):
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=errors,
        )
        self.errors = errors


class AuthenticationError(LockboxException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Authentication is required to continue."):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(LockboxException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You are not authorized to access that location."):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class InternalError(LockboxException):
    """Unexpected failure; the original error is kept for logs only."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, ErrorCode.INTERNAL_ERROR, status_code=500)
        self.original_error = original_error


class DatabaseError(LockboxException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
