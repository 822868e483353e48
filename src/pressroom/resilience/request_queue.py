"""
Per-provider request queue honouring provider-declared rate limits.

One consumer task per provider drains an unbounded FIFO, running exactly
one operation at a time. When the provider's last response reported no
remaining requests, the whole queue pauses until the reset time.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar

from pressroom.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

T = TypeVar("T")

logger = get_logger("pressroom.resilience.request_queue")

LIMIT_HEADER = "x-ratelimit-limit"
REMAINING_HEADER = "x-ratelimit-remaining"
RESET_HEADER = "x-ratelimit-reset"

# Reset values below this are a delta in seconds, not an epoch timestamp
RELATIVE_RESET_THRESHOLD = 1_000_000_000


@dataclass(frozen=True)
class ProviderRateLimitState:
    """Rate limit state from the most recent provider response.

    Attributes:
        limit: Requests allowed per provider window
        remaining: Requests left in the current window
        reset_at_epoch_seconds: When the provider window resets
    """

    limit: int
    remaining: int
    reset_at_epoch_seconds: int

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> ProviderRateLimitState | None:
        """Parse the X-RateLimit-* headers, or None when any is missing or malformed."""
        lowered = {k.lower(): v for k, v in headers.items()}
        try:
            return cls(
                limit=int(lowered[LIMIT_HEADER]),
                remaining=int(lowered[REMAINING_HEADER]),
                reset_at_epoch_seconds=int(float(lowered[RESET_HEADER])),
            )
        except (KeyError, ValueError):
            return None

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0


class ProviderRequestQueue:
    """Serializes requests to one external provider.

    Operations are dispatched strictly in enqueue order and never overlap.
    A failing operation delivers its exception to its own caller and the
    queue keeps draining.

    Example:
        >>> queue = ProviderRequestQueue("pixabay")
        >>> hits = await queue.enqueue(lambda: search_pixabay("cat"))
        >>> queue.update_rate_limit(response.headers)
        >>> await queue.close()
    """

    def __init__(
        self,
        name: str,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the queue.

        Args:
            name: Provider name, used in logs
            clock: Returns the current epoch time in seconds
            sleep: Awaitable sleep taking seconds
        """
        self._name = name
        self._clock = clock
        self._sleep = sleep
        self._state: ProviderRateLimitState | None = None
        self._queue: asyncio.Queue[tuple[Callable[[], Awaitable[Any]], asyncio.Future[Any]]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def rate_limit_state(self) -> ProviderRateLimitState | None:
        """Last state reported by the provider, if any."""
        return self._state

    @property
    def pending(self) -> int:
        """Operations waiting to be dispatched."""
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Append an operation and wait for its own outcome.

        Args:
            operation: Zero-argument async callable

        Returns:
            The operation's result

        Raises:
            Whatever the operation raised
            RuntimeError: If the queue has been closed
        """
        if self._closed:
            raise RuntimeError(f"Request queue '{self._name}' is closed")

        loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
        future: asyncio.Future[Any] = loop.create_future()
        self._queue.put_nowait((operation, future))
        self._ensure_worker()
        return await future

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        """Overwrite the cached state from response headers.

        No-op unless X-RateLimit-Limit, X-RateLimit-Remaining and
        X-RateLimit-Reset are all present.
        """
        state = ProviderRateLimitState.from_headers(headers)
        if state is None:
            return
        if state.reset_at_epoch_seconds < RELATIVE_RESET_THRESHOLD:
            # Pixabay reports seconds until reset rather than an epoch time
            state = replace(
                state,
                reset_at_epoch_seconds=int(self._clock() + state.reset_at_epoch_seconds),
            )
        self._state = state
        logger.debug(
            "Rate limit updated",
            provider=self._name,
            remaining=state.remaining,
            limit=state.limit,
            reset_at=state.reset_at_epoch_seconds,
        )

    async def close(self) -> None:
        """Stop the consumer task and cancel operations still waiting."""
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        if self._queue is not None:
            while not self._queue.empty():
                _, future = self._queue.get_nowait()
                if not future.done():
                    future.cancel()

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(
                self._drain(), name=f"request-queue-{self._name}"
            )

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            operation, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                await self._wait_for_reset()
                try:
                    result = await operation()
                except asyncio.CancelledError:
                    future.cancel()
                    raise
                except Exception as e:
                    logger.warning(
                        "Queued request failed",
                        provider=self._name,
                        error=str(e),
                    )
                    if not future.done():
                        future.set_exception(e)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                self._queue.task_done()

    async def _wait_for_reset(self) -> None:
        state = self._state
        if state is None or not state.exhausted:
            return
        wait_seconds = state.reset_at_epoch_seconds - self._clock()
        if wait_seconds > 0:
            logger.info(
                "Provider rate limited, pausing queue",
                provider=self._name,
                wait_seconds=round(wait_seconds, 3),
            )
            await self._sleep(wait_seconds)

    def __repr__(self) -> str:
        return f"ProviderRequestQueue(name={self._name!r}, pending={self.pending})"
