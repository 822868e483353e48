"""集成网关：统一持有共享 HTTP 客户端、限流器、令牌缓存与各提供方适配器。

Composition root for pressroom.

Gateway owns every long-lived piece: the shared httpx client, the
admission limiter, the Openverse token cache, the Pixabay request queue,
the provider adapters, the media proxy, the aggregator and one
WordPressClient per connected site.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pressroom.cms import InMemorySiteStore, SiteStore, WordPressClient
from pressroom.config import GatewaySettings
from pressroom.errors import ConfigurationError
from pressroom.media import MediaProxy
from pressroom.providers import (
    OPENVERSE_TOKEN_URL,
    SOURCE_NAMES,
    OpenverseProvider,
    PexelsProvider,
    PixabayProvider,
    UnsplashProvider,
    WikimediaProvider,
)
from pressroom.resilience import ProviderRequestQueue, RetryPolicy, SlidingWindowRateLimiter
from pressroom.search import ImageSearchAggregator
from pressroom.telemetry import get_logger
from pressroom.transport import TokenCache, build_client

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    import httpx

    from pressroom.media import ProxiedMedia
    from pressroom.providers import ImageProvider
    from pressroom.types import ImageResult, SearchFilters, SearchPage, SiteCredentials

logger = get_logger("pressroom.gateway")


class Gateway:
    """Entry point for image search, media proxying and WordPress access.

    Example:
        >>> async with Gateway(GatewaySettings.from_env()) as gateway:
        ...     page = await gateway.search_images("harbour", ["all"], per_page=20)
        ...     await gateway.add_site("blog", "https://blog.example.com", "editor", password)
        ...     posts = await (await gateway.wordpress("blog")).get_posts()
    """

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        *,
        site_store: SiteStore | None = None,
        client: httpx.AsyncClient | None = None,
        retry: RetryPolicy | None = None,
        resolver: Callable[[str], Awaitable[list[str]]] | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            settings: Gateway settings (default: from environment)
            site_store: Site credential store (default: in-memory)
            client: Shared httpx client; created and owned when omitted
            retry: Retry policy override, otherwise built from settings
            resolver: DNS resolver used by the media proxy
        """
        self._settings = settings or GatewaySettings.from_env()
        self._sites = site_store or InMemorySiteStore()
        self._owns_client = client is None
        self._client = client or build_client(self._settings.http_timeout)
        self._retry = retry or RetryPolicy(self._settings.retry)
        self._limiter = SlidingWindowRateLimiter(self._settings.rate_limit)
        self._wordpress: dict[str, WordPressClient] = {}
        self._wordpress_lock = asyncio.Lock()

        timeout = self._settings.http_timeout
        self._openverse_tokens = TokenCache(
            OPENVERSE_TOKEN_URL,
            self._settings.openverse_client_id,
            self._settings.openverse_client_secret,
            client=self._client,
            timeout=timeout,
        )
        proxy_kwargs: dict[str, Any] = {"resolver": resolver} if resolver else {}
        self._media_proxy = MediaProxy(
            token_cache=self._openverse_tokens,
            client=self._client,
            timeout=timeout,
            retry=self._retry,
            **proxy_kwargs,
        )
        self._pixabay_queue = ProviderRequestQueue(PixabayProvider.name)

        shared: dict[str, Any] = {
            "client": self._client,
            "retry": self._retry,
            "limiter": self._limiter,
            "timeout": timeout,
        }
        self._unsplash = UnsplashProvider(self._settings.unsplash_access_key, **shared)
        providers: list[ImageProvider] = [
            self._unsplash,
            PexelsProvider(self._settings.pexels_api_key, **shared),
            PixabayProvider(self._settings.pixabay_api_key, queue=self._pixabay_queue, **shared),
            OpenverseProvider(self._openverse_tokens, media_proxy=self._media_proxy, **shared),
        ]
        providers.extend(
            OpenverseProvider(
                self._openverse_tokens, source=source, media_proxy=self._media_proxy, **shared
            )
            for source in SOURCE_NAMES
        )
        providers.append(WikimediaProvider(**shared))
        self._aggregator = ImageSearchAggregator(providers)

        logger.debug(
            "Gateway ready",
            providers=",".join(p.key for p in providers if p.is_configured),
        )

    @property
    def settings(self) -> GatewaySettings:
        return self._settings

    @property
    def aggregator(self) -> ImageSearchAggregator:
        return self._aggregator

    @property
    def limiter(self) -> SlidingWindowRateLimiter:
        return self._limiter

    @property
    def media_proxy(self) -> MediaProxy:
        return self._media_proxy

    @property
    def openverse_tokens(self) -> TokenCache:
        return self._openverse_tokens

    @property
    def pixabay_queue(self) -> ProviderRequestQueue:
        return self._pixabay_queue

    # Image search

    async def search_images(
        self,
        query: str,
        sources: str | Iterable[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> SearchPage:
        return await self._aggregator.search(query, sources, page, per_page, filters)

    async def search_all(
        self,
        query: str,
        sources: str | Iterable[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        filters: SearchFilters | None = None,
    ) -> list[ImageResult]:
        return await self._aggregator.search_all(query, sources, page, per_page, filters)

    async def proxy_media(self, url: str) -> ProxiedMedia:
        return await self._media_proxy.fetch(url)

    async def track_unsplash_download(self, download_location: str) -> bool:
        return await self._unsplash.track_download(download_location)

    # Sites

    async def add_site(
        self, site_id: str, url: str, username: str, app_password: str
    ) -> SiteCredentials:
        """Store a site; replaces any client built for a previous entry."""
        site = await self._sites.create(site_id, url, username, app_password)
        await self._drop_client(site_id)
        logger.info("Site connected", site=site.url)
        return site

    async def remove_site(self, site_id: str) -> bool:
        await self._drop_client(site_id)
        return await self._sites.delete(site_id)

    async def list_sites(self) -> list[SiteCredentials]:
        return await self._sites.list()

    async def wordpress(self, site_id: str) -> WordPressClient:
        """The WordPress client for a stored site, built on first use.

        Raises:
            ConfigurationError: If no site is stored under `site_id`
        """
        async with self._wordpress_lock:
            client = self._wordpress.get(site_id)
            if client is not None:
                return client

            site = await self._sites.get(site_id)
            if site is None:
                raise ConfigurationError(f"Unknown site: {site_id}", setting="site_id")

            client = WordPressClient(
                site.url,
                site.username,
                site.app_password.get_secret_value(),
                client=self._client,
                retry=self._retry,
                limiter=self._limiter,
                timeout=self._settings.cms_timeout,
            )
            self._wordpress[site_id] = client
            return client

    async def _drop_client(self, site_id: str) -> None:
        async with self._wordpress_lock:
            client = self._wordpress.pop(site_id, None)
        if client is not None:
            await client.close()

    # Lifecycle

    async def close(self) -> None:
        """Stop queue workers and close the HTTP client if owned."""
        await self._pixabay_queue.close()
        await self._openverse_tokens.close()
        for client in list(self._wordpress.values()):
            await client.close()
        self._wordpress.clear()
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Gateway:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
