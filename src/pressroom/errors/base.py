"""错误基类：提供分层错误体系和结构化错误上下文。

Base error classes for pressroom.

Provides a layered error hierarchy:
- PressroomError: Base class for all library errors
- TransportError: Connection-level failures (refused, timeout)
- RemoteError: HTTP error responses (status >= 400) before classification
- ClassifiedError: Typed, retry-aware error produced by the classifier
- MediaProxyError: Rejected media passthrough requests
- ConfigurationError: Missing or invalid configuration
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pressroom.errors.codes import ErrorCode


@dataclass
class ErrorContext:
    """Structured error context for diagnostics.

    Provides actionable information for debugging and error handling.
    """

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'transport', 'remote', 'proxy')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class PressroomError(Exception):
    """Base class for all pressroom errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured error context
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message


class TransportError(PressroomError):
    """Connection-level failure talking to a provider.

    Attributes:
        kind: 'connection_refused', 'timeout' or 'other'
        url: Request URL, when known
    """

    CONNECTION_REFUSED = "connection_refused"
    TIMEOUT = "timeout"
    OTHER = "other"

    def __init__(
        self,
        message: str,
        *,
        kind: str = OTHER,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = ErrorContext(source="transport")
        ctx.details["kind"] = kind
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.kind = kind
        self.url = url
        self.__cause__ = cause


class RemoteError(PressroomError):
    """HTTP error response from a provider, before classification.

    Carries everything the classifier needs: status, headers and the
    parsed body (when it was JSON).
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        headers: Mapping[str, str] | None = None,
        body: Any = None,
        url: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="remote")
        ctx.details["status_code"] = status_code
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.status_code = status_code
        # Lower-cased so lookups do not depend on provider casing
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        self.url = url


class ClassifiedError(PressroomError):
    """Typed error describing retryability and suggested backoff.

    Created by the classifier from any failure and never mutated
    afterwards; the retry executor raises it once retries are exhausted.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        http_status: int = 0,
        retryable: bool = False,
        retry_after_seconds: int | None = None,
    ) -> None:
        ctx = ErrorContext(source="classified")
        ctx.details["code"] = code.value
        ctx.details["http_status"] = http_status
        ctx.details["retryable"] = retryable
        if retry_after_seconds is not None:
            ctx.details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, ctx)
        self._code = code
        self._http_status = http_status
        self._retryable = retryable
        self._retry_after_seconds = retry_after_seconds

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def http_status(self) -> int:
        return self._http_status

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def retry_after_seconds(self) -> int | None:
        return self._retry_after_seconds

    @property
    def suggestion(self) -> str | None:
        """Recovery suggestion for the user, if one exists for this code."""
        return self._code.spec.suggestion

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the presentation boundary."""
        return {
            "code": self._code.value,
            "status": self._http_status,
            "message": self.message,
            "retryable": self._retryable,
            "retry_after": self._retry_after_seconds,
            "suggestion": self.suggestion,
        }

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(code={self._code.value}, status={self._http_status}, "
            f"retryable={self._retryable}, retry_after={self._retry_after_seconds})"
        )


class MediaProxyError(PressroomError):
    """Media passthrough request rejected before any upstream fetch."""

    status_code = 400

    def __init__(self, message: str, *, url: str | None = None) -> None:
        ctx = ErrorContext(source="proxy")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url


class ConfigurationError(PressroomError):
    """Missing or invalid configuration."""

    def __init__(self, message: str, *, setting: str | None = None) -> None:
        ctx = ErrorContext(source="config")
        if setting:
            ctx.details["setting"] = setting
        super().__init__(message, ctx)
        self.setting = setting
