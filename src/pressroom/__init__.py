"""编辑器外部集成弹性层：为 WordPress 与图片提供方调用提供分类、重试与限流。

pressroom: External integration resilience layer for a WordPress editor.

Talks to a WordPress REST API and several stock-image providers from one
asyncio process with classified errors, bounded retries, admission
control and per-provider request queues.
"""
from __future__ import annotations

from pressroom.cms import InMemorySiteStore, SiteStore, WordPressClient
from pressroom.config import GatewaySettings, configure_logging
from pressroom.errors import (
    ClassifiedError,
    ErrorCode,
    MediaProxyError,
    PressroomError,
    classify,
)
from pressroom.gateway import Gateway
from pressroom.media import MediaProxy, ProxiedMedia
from pressroom.resilience import ProviderRequestQueue, SlidingWindowRateLimiter, with_retry
from pressroom.search import ImageSearchAggregator
from pressroom.transport import TokenCache
from pressroom.types import ImageResult, PostInput, SearchFilters, SearchPage

__version__ = "0.1.0"

__all__ = [
    # Gateway
    "Gateway",
    "GatewaySettings",
    "configure_logging",
    # Errors
    "ClassifiedError",
    "ErrorCode",
    "MediaProxyError",
    "PressroomError",
    "classify",
    # Resilience
    "ProviderRequestQueue",
    "SlidingWindowRateLimiter",
    "TokenCache",
    "with_retry",
    # Integrations
    "ImageSearchAggregator",
    "InMemorySiteStore",
    "MediaProxy",
    "ProxiedMedia",
    "SiteStore",
    "WordPressClient",
    # Types
    "ImageResult",
    "PostInput",
    "SearchFilters",
    "SearchPage",
    # Version
    "__version__",
]
