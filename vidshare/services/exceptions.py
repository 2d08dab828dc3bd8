# vidshare/services/exceptions.py
"""
Service Layer Exceptions
Typed errors raised by services and mapped to status codes at the API boundary
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for every error a service raises on purpose"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.replace("Error", "").upper()
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# Validation Errors
# ============================================================================


class ValidationError(ServiceError):
    """Request parameters are missing or out of range"""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """An identifier is not well formed"""

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid {field}: {value!r}", field=field)
        self.error_code = "INVALID_IDENTIFIER"
        self.value = value


# ============================================================================
# Resource Errors
# ============================================================================


class ResourceNotFoundError(ServiceError):
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            error_code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResourceConflictError(ServiceError):
    """A uniqueness rule rejected the write"""

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="CONFLICT", details=details)


# ============================================================================
# Permission Errors
# ============================================================================


class PermissionDeniedError(ServiceError):
    status_code = 403

    def __init__(self, action: str, resource_type: str, resource_id: Any):
        super().__init__(
            f"Not allowed to {action} {resource_type} {resource_id}",
            error_code="FORBIDDEN",
            details={
                "action": action,
                "resource_type": resource_type,
                "resource_id": str(resource_id),
            },
        )


# ============================================================================
# Consistency Errors
# ============================================================================


class ConsistencyViolationError(ServiceError):
    """Dependents of a deleted parent could not be fully removed"""

    status_code = 207

    def __init__(self, parent_type: str, parent_id: str, reason: str):
        super().__init__(
            f"Cascade for {parent_type} {parent_id} incomplete: {reason}",
            error_code="CONSISTENCY_VIOLATION",
            details={"parent_type": parent_type, "parent_id": parent_id},
        )
        self.parent_type = parent_type
        self.parent_id = parent_id


# ============================================================================
# Upstream (database) Errors
# ============================================================================


class UpstreamTimeoutError(ServiceError):
    status_code = 504

    def __init__(self, operation: str, timeout_seconds: Optional[float]):
        super().__init__(
            f"{operation} did not finish within {timeout_seconds}s",
            error_code="UPSTREAM_TIMEOUT",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


class UpstreamUnavailableError(ServiceError):
    status_code = 503

    def __init__(self, operation: str, reason: str = ""):
        super().__init__(
            f"Store unavailable during {operation}",
            error_code="UPSTREAM_UNAVAILABLE",
            details={"operation": operation, "reason": reason},
        )


class DatabaseError(ServiceError):
    """Unexpected database failure"""

    status_code = 500

    def __init__(self, operation: str, reason: str = ""):
        super().__init__(
            f"Database error during {operation}",
            error_code="DATABASE_ERROR",
            details={"operation": operation, "reason": reason},
        )


# ============================================================================
# Utility Functions
# ============================================================================


def error_to_http_status(error: Exception) -> int:
    """HTTP status code for an error; anything untyped is a 500"""
    if isinstance(error, ServiceError):
        return error.status_code
    return 500


def is_retryable_error(error: Exception) -> bool:
    """True when the same request may succeed if sent again"""
    return isinstance(
        error, (UpstreamTimeoutError, UpstreamUnavailableError)
    )
