"""
Multi-provider image search.

Fans one query out to the selected providers concurrently and merges the
results in registration order. A failing provider contributes nothing;
it never fails the whole search.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pressroom.errors import classify
from pressroom.telemetry import LogContext, get_log_context, get_logger, set_log_context
from pressroom.types import ImageResult, SearchFilters, SearchPage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pressroom.errors import ClassifiedError
    from pressroom.providers import ImageProvider

logger = get_logger("pressroom.search")

ALL_PROVIDERS = "all"
DEFAULT_SELECTION = ("wikiCommons",)


@dataclass
class ProviderOutcome:
    """What one provider contributed to a search.

    Attributes:
        key: Provider key
        images: Normalized results, empty on failure
        error: Classified failure, None on success
        elapsed_ms: Wall time spent on the provider
    """

    key: str
    images: list[ImageResult] = field(default_factory=list)
    error: ClassifiedError | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


class ImageSearchAggregator:
    """Concurrent search across registered providers.

    Example:
        >>> aggregator = ImageSearchAggregator([unsplash, pexels, wikimedia])
        >>> page = await aggregator.search("lighthouse", ["unsplash", "wikiCommons"], per_page=20)
        >>> page.has_more
    """

    def __init__(self, providers: Iterable[ImageProvider] = ()) -> None:
        self._providers: dict[str, ImageProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: ImageProvider) -> None:
        """Add a provider; registration order is result order."""
        self._providers[provider.key] = provider

    @property
    def provider_keys(self) -> list[str]:
        return list(self._providers)

    def get(self, key: str) -> ImageProvider | None:
        return self._providers.get(key)

    def select(self, selected: str | Iterable[str] | None) -> list[ImageProvider]:
        """Providers to query, in registration order.

        `selected` is a list of keys or a comma separated string. "all"
        selects every provider flagged `included_in_all`; other providers
        still run when named alongside it. Unknown names are ignored.
        """
        if isinstance(selected, str):
            selected = selected.split(",")
        names = {name.strip() for name in selected or ()} - {""}
        if not names:
            names = set(DEFAULT_SELECTION)
        everything = ALL_PROVIDERS in names
        return [
            p
            for key, p in self._providers.items()
            if key in names or (everything and p.included_in_all)
        ]

    async def _capture(
        self,
        provider: ImageProvider,
        query: str,
        page: int,
        per_page: int,
        filters: SearchFilters | None,
    ) -> ProviderOutcome:
        set_log_context(LogContext(request_id=get_log_context().request_id, provider=provider.key))
        start = time.perf_counter()
        outcome = ProviderOutcome(key=provider.key)
        try:
            outcome.images = await provider.search_images(query, page, per_page, filters)
        except Exception as e:
            outcome.error = classify(e)
            logger.warning(
                "Provider search failed",
                code=outcome.error.code.value,
                error=outcome.error.message,
            )
        outcome.elapsed_ms = (time.perf_counter() - start) * 1000
        return outcome

    async def run(
        self,
        query: str,
        selected: str | Iterable[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> list[ProviderOutcome]:
        """Query the selected providers and report each one's outcome."""
        providers = self.select(selected)
        return list(
            await asyncio.gather(
                *(self._capture(p, query, page, per_page, filters) for p in providers)
            )
        )

    async def search_all(
        self,
        query: str,
        selected: str | Iterable[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> list[ImageResult]:
        """Merged results, truncated to `per_page`. Never raises for provider failures."""
        outcomes = await self.run(query, selected, page, per_page, filters)
        images = [image for outcome in outcomes for image in outcome.images]
        failed = [o.key for o in outcomes if not o.ok]
        logger.info(
            "Aggregated search",
            query=query,
            providers=len(outcomes),
            failed=",".join(failed) or None,
            results=len(images),
        )
        return images[:per_page]

    async def search(
        self,
        query: str,
        selected: str | Iterable[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> SearchPage:
        """One page of merged results.

        has_more is a heuristic: a full page suggests another one exists.
        """
        images = await self.search_all(query, selected, page, per_page, filters)
        return SearchPage(images=tuple(images), page=page, has_more=len(images) == per_page)
