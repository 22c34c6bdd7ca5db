"""
Custom exceptions for the training decision engine.

Every exception carries:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"

    # Estimation errors
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"

    # Data/Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class TrainingEngineError(Exception):
    """
    Base exception for all training engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class ValidationError(TrainingEngineError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class InsufficientDataError(TrainingEngineError):
    """Raised when a calculation has too few inputs to produce any result."""

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        received: Optional[int] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if required is not None:
            details["required"] = required
        if received is not None:
            details["received"] = received
        super().__init__(
            message=message,
            code=ErrorCode.INSUFFICIENT_DATA,
            status_code=422,
            details=details,
        )


class NotFoundError(TrainingEngineError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, resource_id: Optional[str] = None) -> None:
        message = f"{resource} not found"
        details: Dict[str, Any] = {"resource": resource}
        if resource_id is not None:
            message = f"{resource} '{resource_id}' not found"
            details["id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=details,
        )


class AuthenticationError(TrainingEngineError):
    """Raised when a shared-secret check fails."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(
            message=message,
            code=ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class DatabaseError(TrainingEngineError):
    """Raised when the persistence layer fails."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        details = {"operation": operation} if operation else None
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details,
        )
