"""
Structured error handling with stable error codes.

Error bodies keep the login endpoint's envelope
(``{"success": false, "error": ...}``) and add a stable code so clients
can branch without parsing messages. Stack traces never reach clients.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API responses."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    METHOD_NOT_ALLOWED = "E1003"
    REQUEST_TOO_LARGE = "E1004"

    # Authorization errors (3xxx)
    FORBIDDEN = "E3000"


@dataclass(frozen=True)
class ErrorResponse:
    """Structured error response for API.

    Format: {success: false, error, code, request_id?, details?}
    """

    code: ErrorCode
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        body: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code.value,
        }
        if self.request_id:
            body["request_id"] = self.request_id
        if self.details:
            body["details"] = self.details
        return body


class AppError(Exception):
    """Base application error with structured error detail."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_response(self, request_id: str | None = None) -> ErrorResponse:
        """Create error response with request ID."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            request_id=request_id,
            details=self.details,
        )


class ValidationError(AppError):
    """Validation error (400)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.VALIDATION_ERROR, message, 400, details)


class ForbiddenError(AppError):
    """Access denied (403)."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(ErrorCode.FORBIDDEN, message, 403)
