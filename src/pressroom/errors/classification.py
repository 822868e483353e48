"""错误分类模块：将传输失败和 HTTP 状态码映射到带重试语义的类型化错误。

Error classification for provider failures.

Maps any raw failure (HTTP error response, connection failure, timeout)
into a ClassifiedError describing retryability and suggested backoff.
"""

from __future__ import annotations

import asyncio
import contextlib
import errno
from typing import Any

import httpx

from pressroom.errors.base import ClassifiedError, RemoteError, TransportError
from pressroom.errors.codes import ErrorCode, from_http_status


def classify(failure: BaseException) -> ClassifiedError:
    """Classify a failure into a ClassifiedError.

    Pure function of its input. Accepts errors raised by the HTTP
    transport, bare httpx exceptions and OS-level connection errors.

    Args:
        failure: The exception to classify

    Returns:
        ClassifiedError with code, status, retryability and backoff hint
    """
    if isinstance(failure, ClassifiedError):
        return failure

    if isinstance(failure, RemoteError):
        return classify_http_error(failure.status_code, failure.body, failure.headers)

    if isinstance(failure, httpx.HTTPStatusError):
        body = None
        with contextlib.suppress(ValueError):
            body = failure.response.json()
        return classify_http_error(
            failure.response.status_code, body, dict(failure.response.headers)
        )

    if is_connection_refused(failure):
        return _from_code(ErrorCode.CONNECTION_REFUSED)

    if _is_timeout(failure):
        return _from_code(ErrorCode.TIMEOUT)

    message = str(failure) or ErrorCode.UNKNOWN_ERROR.spec.message
    return ClassifiedError(ErrorCode.UNKNOWN_ERROR, message, http_status=0)


def classify_http_error(
    status_code: int,
    body: Any = None,
    headers: dict[str, str] | None = None,
) -> ClassifiedError:
    """Classify an HTTP error response.

    Args:
        status_code: HTTP status code
        body: Response body (parsed JSON), if any
        headers: Response headers

    Returns:
        ClassifiedError for the status
    """
    code = from_http_status(status_code)
    spec = code.spec

    if code is ErrorCode.BAD_REQUEST:
        message = extract_error_message(body) or spec.message
        return ClassifiedError(code, message, http_status=status_code)

    if code is ErrorCode.RATE_LIMITED:
        retry_after = _parse_retry_after(headers)
        if retry_after is None:
            retry_after = spec.retry_after_seconds
        return ClassifiedError(
            code,
            spec.message,
            http_status=status_code,
            retryable=True,
            retry_after_seconds=retry_after,
        )

    if code is ErrorCode.UNKNOWN_ERROR:
        message = extract_error_message(body) or spec.message
        return ClassifiedError(
            code, message, http_status=status_code, retryable=status_code >= 500
        )

    return ClassifiedError(
        code,
        spec.message,
        http_status=status_code,
        retryable=spec.retryable,
        retry_after_seconds=spec.retry_after_seconds,
    )


def extract_error_message(body: Any) -> str | None:
    """Extract an error message from a response body.

    Supports the envelopes used by the providers:
    - WordPress style: {"code": "...", "message": "..."}
    - Nested: {"error": {"message": "..."}}
    - Plain: {"error": "..."} or {"detail": "..."}

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not isinstance(body, dict) or not body:
        return None

    msg = body.get("message")
    if isinstance(msg, str) and msg:
        return msg

    error = body.get("error")
    if isinstance(error, dict):
        msg = error.get("message")
        if isinstance(msg, str) and msg:
            return msg
    elif isinstance(error, str) and error:
        return error

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail

    return None


def get_error_message(failure: BaseException) -> str:
    """User-facing message for any failure."""
    return classify(failure).message


def get_recovery_suggestion(failure: BaseException) -> str | None:
    """Recovery suggestion for a failure, or None when there is nothing to suggest."""
    return classify(failure).suggestion


def _from_code(code: ErrorCode) -> ClassifiedError:
    spec = code.spec
    return ClassifiedError(
        code,
        spec.message,
        http_status=0,
        retryable=spec.retryable,
        retry_after_seconds=spec.retry_after_seconds,
    )


def _parse_retry_after(headers: dict[str, str] | None) -> int | None:
    if not headers:
        return None
    raw = headers.get("retry-after") or headers.get("Retry-After")
    if raw is None:
        return None
    try:
        value = int(float(raw))
    except ValueError:
        return None
    return value if value >= 0 else None


def is_connection_refused(failure: BaseException) -> bool:
    """Check whether a failure is a refused TCP connection.

    Walks the cause chain (including exception groups raised by the
    connection backend) looking for ECONNREFUSED. DNS failures and
    unreachable hosts are not refusals.

    Args:
        failure: The exception to inspect

    Returns:
        True if the peer actively refused the connection
    """
    if isinstance(failure, TransportError):
        return failure.kind == TransportError.CONNECTION_REFUSED

    seen: set[int] = set()
    pending: list[BaseException] = [failure]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        if isinstance(current, OSError) and current.errno == errno.ECONNREFUSED:
            return True
        pending.extend(getattr(current, "exceptions", ()))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                pending.append(linked)
    return False


def _is_timeout(failure: BaseException) -> bool:
    if isinstance(failure, TransportError):
        return failure.kind == TransportError.TIMEOUT
    return isinstance(failure, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError))
