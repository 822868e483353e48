"""
Admission rate limiter using a sliding window.

Advisory admission control at the calling layer: counts the requests
issued per logical key within a trailing window, independent of any
limits a provider declares in its response headers.
"""

from __future__ import annotations

import math
import os
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pressroom.errors import ClassifiedError, ErrorCode

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass
class RateLimiterConfig:
    """Configuration for the admission rate limiter.

    Attributes:
        max_requests: Requests admitted per key within one window
        window_ms: Length of the sliding window in milliseconds
    """

    max_requests: int = 100
    window_ms: int = 60_000

    @classmethod
    def from_env(cls) -> RateLimiterConfig:
        """Create configuration from environment variables."""
        return cls(
            max_requests=int(os.getenv("PRESSROOM_MAX_REQUESTS", "100")),
            window_ms=int(os.getenv("PRESSROOM_WINDOW_MS", "60000")),
        )


def _now_ms() -> float:
    return time.time() * 1000.0


class SlidingWindowRateLimiter:
    """Sliding-window request counter keyed by logical endpoint group.

    Timestamps older than the window are pruned lazily on each admission
    check. State lives for the lifetime of the process.

    Example:
        >>> limiter = SlidingWindowRateLimiter(RateLimiterConfig(max_requests=3, window_ms=1000))
        >>> limiter.is_allowed("wordpress-api")
        True
    """

    def __init__(
        self,
        config: RateLimiterConfig | None = None,
        *,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize rate limiter.

        Args:
            config: Rate limiter configuration
            clock: Returns the current time in milliseconds
        """
        self._config = config or RateLimiterConfig()
        self._clock = clock
        self._windows: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def is_allowed(self, key: str) -> bool:
        """Admit one request for `key` if the window has room.

        Records the request when admitted; a rejected request is not
        recorded.
        """
        with self._lock:
            now = self._clock()
            window = [t for t in self._windows.get(key, []) if now - t < self._config.window_ms]

            if len(window) >= self._config.max_requests:
                self._windows[key] = window
                return False

            window.append(now)
            self._windows[key] = window
            return True

    def get_retry_after_seconds(self, key: str) -> int:
        """Seconds until the oldest recorded request for `key` leaves the window."""
        with self._lock:
            window = self._windows.get(key)
            if not window:
                return 0
            remaining_ms = window[0] + self._config.window_ms - self._clock()
            return max(0, math.ceil(remaining_ms / 1000.0))

    def ensure_allowed(self, key: str) -> None:
        """Admit a request or raise a RATE_LIMITED error.

        Raises:
            ClassifiedError: When the window for `key` is full
        """
        if self.is_allowed(key):
            return
        retry_after = self.get_retry_after_seconds(key)
        raise ClassifiedError(
            ErrorCode.RATE_LIMITED,
            f"Rate limit exceeded. Please try again in {retry_after} seconds.",
            http_status=429,
            retryable=True,
            retry_after_seconds=retry_after,
        )

    def count(self, key: str) -> int:
        """Requests currently recorded for `key` (without pruning)."""
        with self._lock:
            return len(self._windows.get(key, []))

    def reset(self, key: str | None = None) -> None:
        """Forget recorded requests for one key, or for every key."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def __repr__(self) -> str:
        return (
            f"SlidingWindowRateLimiter(max_requests={self._config.max_requests}, "
            f"window_ms={self._config.window_ms}, keys={len(self._windows)})"
        )
