"""
Resilience layer - Retry, admission control and provider request queues.

This module provides the patterns used for every external call:
- RetryPolicy: Exponential backoff driven by the error classifier
- SlidingWindowRateLimiter: Per-key admission control
- ProviderRequestQueue: Serialized per-provider dispatch honouring
  X-RateLimit-* headers
"""

from pressroom.resilience.rate_limiter import RateLimiterConfig, SlidingWindowRateLimiter
from pressroom.resilience.request_queue import ProviderRateLimitState, ProviderRequestQueue
from pressroom.resilience.retry import RetryConfig, RetryPolicy, RetryResult, with_retry

__all__ = [
    # Request queue
    "ProviderRateLimitState",
    "ProviderRequestQueue",
    # Admission control
    "RateLimiterConfig",
    # Retry
    "RetryConfig",
    "RetryPolicy",
    "RetryResult",
    "SlidingWindowRateLimiter",
    "with_retry",
]
