"""Custom exception classes for the application.

Every failure a handler can report maps to one class here, and each class
carries the HTTP status the exception handlers render it with.
"""

from typing import Optional, Any, Dict


class AppException(Exception):
    """Base exception class for all application exceptions.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code to return.
        details: Optional additional error details.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize application exception.

        Args:
            message: Error message.
            status_code: HTTP status code (default: 500).
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(AppException):
    """Raised when a request carries no usable session."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class ForbiddenError(AppException):
    """Raised when the caller's role may not perform the operation."""

    def __init__(self, message: str = "Forbidden", required_roles: Optional[list] = None):
        details = {"required_roles": required_roles} if required_roles else {}
        super().__init__(message, status_code=403, details=details)


class NotFoundError(AppException):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any, message: Optional[str] = None):
        """Initialize not found error.

        Args:
            resource: Type of resource (e.g., 'Patient', 'Assignment').
            identifier: ID or identifier that was not found.
            message: Optional message replacing the generated one.
        """
        message = message or f"{resource} with id '{identifier}' not found"
        super().__init__(message, status_code=404, details={"resource": resource, "id": identifier})


class ValidationError(AppException):
    """Exception raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error.

        Args:
            message: Validation error message.
            field: Optional field name that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, status_code=400, details=details)


class ConflictError(AppException):
    """Raised when a write would duplicate an existing unique record."""

    def __init__(self, message: str, resource: Optional[str] = None):
        details = {"resource": resource} if resource else {}
        super().__init__(message, status_code=409, details=details)


class InvalidStatusTransitionError(AppException):
    """Raised when a status change is not in the allowed-transition table."""

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(
            f"{entity} cannot move from '{current}' to '{requested}'",
            status_code=409,
            details={"entity": entity, "current": current, "requested": requested},
        )


class UpstreamError(AppException):
    """Raised when the text-generation service answers with a failure.

    The upstream body is logged where the failure is detected and never
    copied into the message returned to clients.
    """

    def __init__(self, upstream_status: Optional[int] = None):
        details = {"upstream_status": upstream_status} if upstream_status else {}
        super().__init__("AI service error", status_code=502, details=details)


class InvalidUpstreamOutputError(AppException):
    """Raised when generated text cannot be parsed into the expected JSON array."""

    def __init__(self, artifact: str):
        super().__init__(f"Failed to parse {artifact}", status_code=500, details={"artifact": artifact})


class DatabaseError(AppException):
    """Exception raised when database operations fail."""

    def __init__(self, message: str, operation: Optional[str] = None):
        """Initialize database error.

        Args:
            message: Database error message.
            operation: Optional operation that failed (e.g., 'create', 'update').
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, status_code=500, details=details)


class ConfigurationError(AppException):
    """Exception raised when application configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        """Initialize configuration error.

        Args:
            message: Configuration error message.
            config_key: Optional configuration key that is invalid.
        """
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, status_code=500, details=details)
