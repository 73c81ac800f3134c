"""
VidTube Backend — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions, one per failure kind a handler reports.
How:   Each exception carries an HTTP status, a user-facing message, a list of
       client-facing error details and a private context dict. The handlers
       registered in main.py turn them into the error envelope.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    VidTubeError (base)
    ├── ValidationError        → 400 Bad Request
    ├── UnauthenticatedError   → 401 Unauthorized
    ├── PermissionDeniedError  → 403 Forbidden
    ├── NotFoundError          → 404 Not Found
    ├── MediaUploadError       → 500 Internal Server Error
    └── DatabaseError          → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class VidTubeError(Exception):
    """
    Base exception for all VidTube application errors.

    Attributes:
        status_code: HTTP status the error maps to
        message:     User-facing error description (safe to return)
        errors:      Structured details returned in the envelope's `errors`
        context:     Debug info for the server log only
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        errors: Optional[List[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.errors = errors or []
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(VidTubeError):
    """
    Raised when client input fails validation (malformed id, blank field,
    missing or oversized upload).
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        details = list(errors or [])
        if field:
            ctx["field"] = field
            if not details:
                details.append({"field": field, "message": message})
        super().__init__(message=message, errors=details, context=ctx)
        self.field = field


class UnauthenticatedError(VidTubeError):
    """Raised when a request needs an acting user and none could be resolved."""

    status_code = 401

    def __init__(
        self,
        message: str = "Unauthorized request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(VidTubeError):
    """
    Raised when the acting user is known but may not perform the operation,
    e.g. editing someone else's tweet or viewing an unpublished video.
    """

    status_code = 403

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(VidTubeError):
    """
    Raised when a referenced entity does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so the handler layer can answer 404.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class MediaUploadError(VidTubeError):
    """
    Raised when the media host rejects or fails an upload after retries.

    The message is user-facing ("Failed to upload video"); the upstream
    response is kept in context for the log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to upload media",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(VidTubeError):
    """
    Raised when a store operation fails unexpectedly.

    The message returned to the client is always generic; the driver error is
    only logged.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
