"""Structured error codes and the exception hierarchy.

Upstream errors are raised inside adapters and flattened into fallback values
there; only an AssemblyFailure ever reaches the HTTP layer.
"""
from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Error codes used in logs and in the API error envelope."""

    # Upstream adapters (recovered locally, never surfaced)
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    MODEL_OUTPUT_INVALID = "MODEL_OUTPUT_INVALID"

    # Dashboard assembly
    DASHBOARD_BUILD_FAILED = "DASHBOARD_BUILD_FAILED"

    # API
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_CODE_MESSAGES = {
    ErrorCode.UPSTREAM_UNAVAILABLE: "Upstream service unavailable",
    ErrorCode.MODEL_OUTPUT_INVALID: "Model output could not be parsed",
    ErrorCode.DASHBOARD_BUILD_FAILED: "Failed to build dashboard",
    ErrorCode.VALIDATION_ERROR: "Invalid request payload",
    ErrorCode.AUTH_REQUIRED: "No token provided",
    ErrorCode.AUTH_INVALID: "Invalid or expired token",
    ErrorCode.FORBIDDEN: "You are not allowed to perform this action",
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.CONFLICT: "Resource already exists",
    ErrorCode.INTERNAL_ERROR: "An internal error occurred",
}


def get_error_message(error_code: ErrorCode) -> str:
    """Get the default user-facing message for an error code."""
    return ERROR_CODE_MESSAGES.get(error_code, "An error occurred")


class AdvisorError(Exception):
    """Exception with structured error code and message."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.error_code = error_code
        self.message = message or get_error_message(error_code)
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class UpstreamError(AdvisorError):
    """Base for failures of a third-party API, tagged with the adapter name."""

    error_code_default = ErrorCode.UPSTREAM_UNAVAILABLE

    def __init__(self, upstream: str, message: str, details: Optional[dict] = None):
        self.upstream = upstream
        super().__init__(self.error_code_default, message, details)


class UpstreamUnavailable(UpstreamError):
    """Network error, non-2xx status or malformed body."""

    error_code_default = ErrorCode.UPSTREAM_UNAVAILABLE


class ModelOutputInvalid(UpstreamError):
    """Text-generation reply is unparseable or misses required fields."""

    error_code_default = ErrorCode.MODEL_OUTPUT_INVALID


class AssemblyFailure(AdvisorError):
    """An exception escaped an adapter while building the dashboard."""

    def __init__(self, message: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(ErrorCode.DASHBOARD_BUILD_FAILED, message, details)
