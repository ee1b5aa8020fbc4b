"""
DevCamper Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, each carrying an HTTP status code,
       a machine-readable error code and a user-facing message.
How:   Services and auth dependencies raise these; the global handlers
       registered in main.py turn them into the JSON error envelope.

Exception Hierarchy:
    DevCamperError (base)               → 500
    ├── ValidationError                 → 400 Bad Request
    ├── NotAuthorizedError              → 401 Unauthorized
    ├── ForbiddenError                  → 403 Forbidden
    ├── NotFoundError                   → 404 Not Found
    ├── FileStorageError                → 500 Internal Server Error
    ├── GeocodingError                  → 503 Service Unavailable
    └── CircuitBreakerOpenError         → 503 Service Unavailable
"""

from typing import Any, Dict, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (returned as `details` only by the
                  handlers that choose to expose it)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(DevCamperError):
    """
    Raised when client input fails a business rule.

    When:    Second bootcamp for a publisher, bad upload, unknown filter field.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotAuthorizedError(DevCamperError):
    """
    Raised when the requester is unauthenticated, or authenticated but not
    the owner of the resource they are trying to change.

    HTTP:    401 Unauthorized
    """

    status_code = 401
    error_code = "not_authorized"

    def __init__(
        self,
        message: str = "Not authorized to access this route",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(DevCamperError):
    """
    Raised when the requester's role is not allowed on a route.

    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(self, role: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["role"] = role
        super().__init__(
            message=f"User role {role} is not authorized to access this route",
            context=ctx,
        )
        self.role = role


class NotFoundError(DevCamperError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None
    into this exception.
    HTTP:    404 Not Found
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(DevCamperError):
    """
    Raised when writing an uploaded file fails (disk full, permissions).

    HTTP:    500 Internal Server Error
    """

    error_code = "file_storage_error"

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocodingError(DevCamperError):
    """
    Raised when the geocoding provider fails after all retries.

    HTTP:    503 Service Unavailable
    """

    status_code = 503
    error_code = "geocoding_error"

    def __init__(
        self,
        message: str = "Geocoding service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(DevCamperError):
    """
    Raised when the geocoder circuit breaker is OPEN.

    HTTP:    503 Service Unavailable
    """

    status_code = 503
    error_code = "service_unavailable"

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Geocoding is temporarily unavailable due to repeated failures. "
            f"Retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
