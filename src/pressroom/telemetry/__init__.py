"""
Telemetry module for pressroom.

Provides structured logging with request-scoped context and credential
masking.
"""

from pressroom.telemetry.logger import (
    JsonFormatter,
    LogContext,
    LogLevel,
    PressroomLogger,
    SensitiveDataMasker,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "PressroomLogger",
    "SensitiveDataMasker",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
