"""
Base class for image search providers.

A provider turns a search into one provider-specific HTTP exchange and
maps the payload into ImageResult. Every call passes, in order, the
shared admission limiter, the provider's own request queue (when it has
one) and the retry policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from pressroom.resilience import RetryPolicy, with_retry
from pressroom.telemetry import get_logger
from pressroom.transport import HttpTransport
from pressroom.types import UNKNOWN_CREATOR, ImageResult, SearchFilters

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    import httpx

    from pressroom.resilience import ProviderRequestQueue, SlidingWindowRateLimiter

T = TypeVar("T")

logger = get_logger("pressroom.providers")


class ImageProvider(ABC):
    """Image search adapter for one external provider.

    Subclasses set `name`, `display_name` and `base_url`, and implement
    `is_configured`, `_fetch` and `_parse`.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    base_url: ClassVar[str] = ""
    # Queried when the caller selects "all"; otherwise only when named
    included_in_all: ClassVar[bool] = True

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        retry: RetryPolicy | None = None,
        limiter: SlidingWindowRateLimiter | None = None,
        queue: ProviderRequestQueue | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            client: Shared httpx client
            retry: Retry policy for provider calls
            limiter: Shared admission limiter, keyed by provider key
            queue: Request queue owned by this provider
            timeout: Request timeout in seconds
        """
        self._retry = retry or RetryPolicy()
        self._limiter = limiter
        self._queue = queue
        self._transport = HttpTransport(
            self.base_url,
            headers=self._default_headers(),
            timeout=timeout,
            client=client,
            on_response=self._observe_response,
        )

    @property
    def key(self) -> str:
        """Registry key used for selection and admission control."""
        return self.name

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the credentials this provider needs are present."""

    async def search_images(
        self,
        query: str,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> list[ImageResult]:
        """Search the provider and return normalized results.

        An unconfigured provider returns an empty list instead of raising,
        so aggregation is never blocked by a missing API key.

        Raises:
            ClassifiedError: When the provider call fails after retries
        """
        if not self.is_configured:
            logger.debug("Provider not configured, skipping", provider=self.key)
            return []

        filters = filters or SearchFilters()
        payload = await self._call(lambda: self._fetch(query, page, per_page, filters))
        results = self._parse(payload)
        logger.info("Search finished", provider=self.key, query=query, results=len(results))
        return results

    async def close(self) -> None:
        await self._transport.close()

    async def _call(self, operation: Callable[[], Awaitable[T]]) -> T:
        if self._limiter is not None:
            self._limiter.ensure_allowed(self.key)

        async def attempt() -> T:
            return await with_retry(operation, policy=self._retry)

        if self._queue is not None:
            return await self._queue.enqueue(attempt)
        return await attempt()

    def _observe_response(self, response: httpx.Response) -> None:
        if self._queue is not None:
            self._queue.update_rate_limit(response.headers)

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    @abstractmethod
    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        """Perform the provider request(s) and return the decoded payload."""

    @abstractmethod
    def _parse(self, payload: Any) -> list[ImageResult]:
        """Map the decoded payload into ImageResult values."""


def creator_or_unknown(value: Any) -> str:
    """Creator name, or the literal "Unknown" when the provider omits it."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return UNKNOWN_CREATOR
