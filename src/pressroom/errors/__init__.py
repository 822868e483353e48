"""错误体系：提供结构化错误类型和带重试语义的错误分类。

Error hierarchy for pressroom.

Provides structured error types and the classifier that drives retry
decisions.
"""

from pressroom.errors.base import (
    ClassifiedError,
    ConfigurationError,
    ErrorContext,
    MediaProxyError,
    PressroomError,
    RemoteError,
    TransportError,
)
from pressroom.errors.classification import (
    classify,
    classify_http_error,
    extract_error_message,
    get_error_message,
    get_recovery_suggestion,
    is_connection_refused,
)
from pressroom.errors.codes import (
    ERROR_SPECS,
    ErrorCode,
    ErrorSpec,
    from_http_status,
    from_name,
)

__all__ = [
    "ERROR_SPECS",
    # Base errors
    "ClassifiedError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorContext",
    "ErrorSpec",
    "MediaProxyError",
    "PressroomError",
    "RemoteError",
    "TransportError",
    # Classification
    "classify",
    "classify_http_error",
    "extract_error_message",
    "from_http_status",
    "from_name",
    "get_error_message",
    "get_recovery_suggestion",
    "is_connection_refused",
]
