"""Exceptions for lifecycle operations and their client-facing error shape."""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..utils import utcnow


class GovernanceError(Exception):
    """Base exception for lifecycle rule failures."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str, resource_id: Optional[str] = None):
        self.message = message
        self.resource_id = resource_id
        super().__init__(message)


class ResourceNotFoundException(GovernanceError):
    """Raised when an id does not resolve under the operation's read scope."""

    status_code = 404
    error = "Resource Not Found"

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        super().__init__(
            f"{resource_type} not found with id: {resource_id}",
            resource_id=resource_id,
        )


class ResourceConflictException(GovernanceError):
    """Raised when a uniqueness constraint would be violated."""

    status_code = 409
    error = "Resource Conflict"

    def __init__(self, resource_type: str, field: str, value: str):
        self.resource_type = resource_type
        self.field = field
        self.value = value
        super().__init__(f"{resource_type} with {field} '{value}' already exists")


class BusinessRuleViolationException(GovernanceError):
    """Raised when a lifecycle precondition fails."""

    status_code = 403
    error = "Business Rule Violation"


class ValidationFailure(GovernanceError):
    """Raised when a request payload fails field validation."""

    status_code = 400
    error = "Validation Failed"

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("Request validation failed")


class ErrorResponse(BaseModel):
    """Error body surfaced to callers."""

    error: str = Field(..., description="Short error title")
    message: str = Field(..., description="Human readable explanation")
    status: int = Field(..., description="HTTP-equivalent status code")
    timestamp: datetime = Field(default_factory=utcnow)
    validation_errors: Optional[Dict[str, str]] = Field(
        None, description="Field to message map for validation failures"
    )


def error_response_for(exc: BaseException) -> ErrorResponse:
    """
    Map an exception to the error body a caller receives.

    Unknown exceptions are reported as a generic internal error without
    leaking their message.

    Args:
        exc: Raised exception

    Returns:
        Error response
    """
    if isinstance(exc, GovernanceError):
        return ErrorResponse(
            error=exc.error,
            message=exc.message,
            status=exc.status_code,
            validation_errors=getattr(exc, "errors", None),
        )

    return ErrorResponse(
        error=GovernanceError.error,
        message="An unexpected error occurred",
        status=GovernanceError.status_code,
    )
