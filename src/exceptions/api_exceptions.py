"""
CodeReview API Exception Hierarchy

Every error the HTTP surface can report maps to one class here. Each class
carries the HTTP status it is rendered with; command failures never reach
the transport layer and are folded into a RunResult instead.
"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone


class CodeReviewAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class RequestValidationError(CodeReviewAPIError):
    """Raised when a request body is malformed or violates the schema."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class RouteNotFoundError(CodeReviewAPIError):
    """Raised for any method/path combination the API does not serve."""

    status_code = 404

    def __init__(self, method: str, path: str):
        super().__init__(
            f"{method} {path} is not a valid endpoint",
            error_code="NOT_FOUND",
            details={"method": method, "path": path},
        )
        self.method = method
        self.path = path


class RateLimitExceededError(CodeReviewAPIError):
    """Raised when a client exceeds its request ceiling within a window."""

    status_code = 429

    def __init__(self, client_id: str, retry_after: int):
        super().__init__(
            "Rate limit exceeded. Try again later.",
            error_code="RATE_LIMITED",
            details={"client_id": client_id, "retry_after": retry_after},
        )
        self.client_id = client_id
        self.retry_after = retry_after


class ReviewExecutionError(CodeReviewAPIError):
    """
    Raised inside the command runner when the review script cannot complete.

    The runner converts it into a failed RunResult; it is never rendered as
    an HTTP error.
    """

    def __init__(self, message: str, code: int, cause: Optional[Exception] = None):
        super().__init__(message, error_code="EXECUTION_ERROR", details={"code": code})
        self.code = code
        self.cause = cause


class CommandTimeoutError(ReviewExecutionError):
    """Raised when the review script does not exit within the timeout."""

    def __init__(self, timeout_ms: int):
        super().__init__(f"Command timed out after {timeout_ms}ms", code=-1)
        self.timeout_ms = timeout_ms


class InternalServerError(CodeReviewAPIError):
    """Unexpected failure; the client only ever sees a generic message."""

    status_code = 500

    def __init__(self, cause: Optional[Exception] = None):
        super().__init__("Internal server error", error_code="INTERNAL_ERROR")
        self.cause = cause
