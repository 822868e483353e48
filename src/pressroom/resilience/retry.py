"""
Retry policy with exponential backoff.

Every failure is classified; permanent errors stop immediately and a
provider-declared backoff always wins over the computed exponential delay.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from pressroom.errors import ClassifiedError, classify
from pressroom.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = get_logger("pressroom.resilience.retry")


@dataclass
class RetryConfig:
    """Configuration for retry policy.

    Attributes:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay_ms: Delay before the first retry; doubled on every attempt
        exponential_base: Growth factor between attempts
    """

    max_retries: int = 3
    base_delay_ms: int = 1000
    exponential_base: float = 2.0

    @classmethod
    def from_env(cls) -> RetryConfig:
        """Create configuration from environment variables."""
        return cls(
            max_retries=int(os.getenv("PRESSROOM_MAX_RETRIES", "3")),
            base_delay_ms=int(os.getenv("PRESSROOM_BASE_DELAY_MS", "1000")),
        )

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Create a config that disables retries."""
        return cls(max_retries=0)


@dataclass
class RetryResult:
    """Result of a retry operation.

    Attributes:
        success: Whether the operation succeeded
        value: The result value (if success)
        error: The last classified error (if failed)
        attempts: Number of attempts made
        total_delay_ms: Total delay from retries in milliseconds
    """

    success: bool
    value: object = None
    error: ClassifiedError | None = None
    attempts: int = 0
    total_delay_ms: float = 0.0


class RetryPolicy:
    """Bounded exponential-backoff retry driven by the error classifier.

    Waiting uses a non-blocking sleep, so other in-flight operations are
    never delayed by one caller's backoff.

    Example:
        >>> policy = RetryPolicy(RetryConfig(max_retries=3))
        >>> result = await policy.execute(fetch_posts)
        >>> if not result.success:
        ...     print(result.error.code, result.attempts)
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        classifier: Callable[[BaseException], ClassifiedError] = classify,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize retry policy.

        Args:
            config: Retry configuration
            classifier: Maps a failure to a ClassifiedError
            sleep: Awaitable sleep taking seconds
        """
        self._config = config or RetryConfig()
        self._classify = classifier
        self._sleep = sleep

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay_ms(self, attempt: int, retry_after_seconds: int | None = None) -> float:
        """Delay before the retry following `attempt` (0-based).

        Returns max(retry_after * 1000, base * growth ** attempt).
        """
        computed = self._config.base_delay_ms * (self._config.exponential_base ** attempt)
        if retry_after_seconds is not None and retry_after_seconds > 0:
            return max(retry_after_seconds * 1000.0, computed)
        return computed

    def should_retry(self, error: ClassifiedError, attempt: int) -> bool:
        """Check whether a classified error on `attempt` (0-based) earns another try."""
        if attempt >= self._config.max_retries:
            return False
        return error.retryable

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, ClassifiedError, float], None] | None = None,
    ) -> RetryResult:
        """Execute an operation with retry.

        Args:
            operation: Async operation to execute
            on_retry: Optional callback called before each retry with
                (attempt number, error, delay in ms)

        Returns:
            RetryResult with success status and value/error
        """
        total_delay_ms = 0.0
        attempt = 0

        while True:
            try:
                value = await operation()
            except Exception as e:
                error = self._classify(e)
                if error is not e and error.__cause__ is None:
                    error.__cause__ = e
                if not self.should_retry(error, attempt):
                    return RetryResult(
                        success=False,
                        error=error,
                        attempts=attempt + 1,
                        total_delay_ms=total_delay_ms,
                    )

                delay_ms = self.calculate_delay_ms(attempt, error.retry_after_seconds)
                total_delay_ms += delay_ms
                logger.warning(
                    "Attempt failed, retrying",
                    attempt=attempt + 1,
                    delay_ms=delay_ms,
                    code=error.code.value,
                    reason=error.message,
                )
                if on_retry:
                    on_retry(attempt + 1, error, delay_ms)

                await self._sleep(delay_ms / 1000.0)
                attempt += 1
            else:
                return RetryResult(
                    success=True,
                    value=value,
                    attempts=attempt + 1,
                    total_delay_ms=total_delay_ms,
                )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay_ms: int = 1000,
    *,
    policy: RetryPolicy | None = None,
) -> T:
    """Execute an operation with retry, raising the last ClassifiedError on failure.

    Args:
        operation: Async operation to execute
        max_retries: Retries after the first attempt
        base_delay_ms: Base exponential delay
        policy: Pre-built policy; overrides max_retries/base_delay_ms

    Returns:
        Operation result

    Raises:
        ClassifiedError: The last classified failure
    """
    policy = policy or RetryPolicy(
        RetryConfig(max_retries=max_retries, base_delay_ms=base_delay_ms)
    )
    result = await policy.execute(operation)

    if result.success:
        return result.value  # type: ignore[return-value]
    assert result.error is not None
    raise result.error
