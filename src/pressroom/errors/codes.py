"""错误码表：定义每个错误码的默认消息、重试语义和恢复建议。

Error codes for the integration layer.

Each code carries its default message, retry semantics, suggested
backoff and a user-facing recovery suggestion.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ErrorSpec:
    """Static description of one error code."""

    message: str
    """Default human-readable message."""

    retryable: bool
    """Whether the error is retried with backoff."""

    retry_after_seconds: int | None
    """Default backoff hint in seconds, when the code has one."""

    suggestion: str | None
    """Recovery suggestion shown to the user."""


class ErrorCode(str, Enum):
    """Error classification codes."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @property
    def spec(self) -> ErrorSpec:
        """Return the ErrorSpec for this code."""
        return ERROR_SPECS[self]


ERROR_SPECS: dict[ErrorCode, ErrorSpec] = {
    ErrorCode.BAD_REQUEST: ErrorSpec(
        message="Invalid request parameters",
        retryable=False,
        retry_after_seconds=None,
        suggestion=None,
    ),
    ErrorCode.UNAUTHORIZED: ErrorSpec(
        message="Authentication failed. Please check your credentials.",
        retryable=False,
        retry_after_seconds=None,
        suggestion="Please check your username and application password or API key.",
    ),
    ErrorCode.FORBIDDEN: ErrorSpec(
        message="Access denied. Please check your permissions.",
        retryable=False,
        retry_after_seconds=None,
        suggestion="Please ensure your user has the necessary permissions.",
    ),
    ErrorCode.NOT_FOUND: ErrorSpec(
        message="Resource not found",
        retryable=False,
        retry_after_seconds=None,
        suggestion=None,
    ),
    ErrorCode.RATE_LIMITED: ErrorSpec(
        message="Too many requests. Please try again later.",
        retryable=True,
        retry_after_seconds=60,
        suggestion="Please wait a moment before making another request.",
    ),
    ErrorCode.SERVER_ERROR: ErrorSpec(
        message="Internal server error. Please try again later.",
        retryable=True,
        retry_after_seconds=30,
        suggestion="The remote site is experiencing issues. Please try again later.",
    ),
    ErrorCode.SERVICE_UNAVAILABLE: ErrorSpec(
        message="Service temporarily unavailable. Please try again later.",
        retryable=True,
        retry_after_seconds=60,
        suggestion=None,
    ),
    ErrorCode.CONNECTION_REFUSED: ErrorSpec(
        message="Cannot connect to the remote site. Please check the URL and try again.",
        retryable=True,
        retry_after_seconds=30,
        suggestion="Please verify the site URL is correct and the site is accessible.",
    ),
    ErrorCode.TIMEOUT: ErrorSpec(
        message="Request timed out. Please try again.",
        retryable=True,
        retry_after_seconds=30,
        suggestion=None,
    ),
    ErrorCode.UNKNOWN_ERROR: ErrorSpec(
        message="An unexpected error occurred",
        retryable=False,
        retry_after_seconds=None,
        suggestion=None,
    ),
}

_HTTP_STATUS_TO_CODE: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    429: ErrorCode.RATE_LIMITED,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.SERVICE_UNAVAILABLE,
    503: ErrorCode.SERVICE_UNAVAILABLE,
    504: ErrorCode.SERVICE_UNAVAILABLE,
}


def from_http_status(status_code: int) -> ErrorCode:
    """Get the ErrorCode for an HTTP status code.

    Statuses outside the table map to UNKNOWN_ERROR; whether that is
    retryable depends on the status range and is decided by the classifier.
    """
    return _HTTP_STATUS_TO_CODE.get(status_code, ErrorCode.UNKNOWN_ERROR)


def from_name(name: str) -> ErrorCode:
    """Get the ErrorCode by name.

    Raises:
        KeyError: If the name is not a known code.
    """
    try:
        return ErrorCode(name)
    except ValueError:
        raise KeyError(f"Unknown error code: {name!r}") from None
