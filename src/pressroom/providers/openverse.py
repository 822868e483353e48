"""
Openverse image search.

Openverse authenticates with OAuth2 client credentials; the bearer token
comes from a TokenCache shared by every Openverse instance. An instance
may be pinned to one upstream source (flickr, nasa, rawpixel, ...), in
which case it is registered under that source's key. Image URLs are
routed through the media proxy because many upstream hosts block
hotlinking.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pressroom.errors import ClassifiedError, ErrorCode, RemoteError
from pressroom.media import rewrite_url
from pressroom.providers.base import ImageProvider, logger
from pressroom.transport import bearer_auth_header
from pressroom.types import UNKNOWN_CREATOR, ImageResult, SearchFilters

if TYPE_CHECKING:
    from pressroom.media import MediaProxy
    from pressroom.transport import TokenCache

OPENVERSE_TOKEN_URL = "https://api.openverse.org/v1/auth_tokens/token/"

DEFAULT_LICENSE = "cc0,pdm,by,by-sa"
DEFAULT_CATEGORY = "photograph,illustration"
MAX_PAGE_SIZE = 20

SOURCE_NAMES = {
    "flickr": "Flickr",
    "nasa": "NASA",
    "rawpixel": "Rawpixel",
    "inaturalist": "iNaturalist",
    "stocksnap": "StockSnap.io",
}

RAWPIXEL = "rawpixel"


class OpenverseProvider(ImageProvider):
    """Openverse search adapter, optionally pinned to one source."""

    name = "openverse"
    display_name = "Openverse"
    base_url = "https://api.openverse.org/v1"
    included_in_all = False

    def __init__(
        self,
        token_cache: TokenCache,
        *,
        source: str | None = None,
        media_proxy: MediaProxy | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the provider.

        Args:
            token_cache: Openverse client-credentials token cache
            source: Upstream source to restrict results to
            media_proxy: Proxy used to rewrite image URLs
            **kwargs: Passed to ImageProvider
        """
        self._tokens = token_cache
        self._source = source
        self._media_proxy = media_proxy
        super().__init__(**kwargs)

    @property
    def key(self) -> str:
        return self._source or self.name

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def source_name(self) -> str:
        return SOURCE_NAMES.get(self._source or "", self.display_name)

    @property
    def is_configured(self) -> bool:
        return self._tokens.has_credentials

    def _proxied(self, url: str) -> str:
        if self._media_proxy is not None:
            return self._media_proxy.rewrite(url)
        return rewrite_url(url)

    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        token = await self._tokens.get_token()
        if token is None:
            raise ClassifiedError(
                ErrorCode.UNAUTHORIZED,
                "Openverse authentication failed",
                http_status=401,
            )

        params: dict[str, Any] = {
            "q": query,
            "page": page,
            "page_size": max(1, min(MAX_PAGE_SIZE, per_page)),
            "license": filters.license or DEFAULT_LICENSE,
            "category": filters.category or DEFAULT_CATEGORY,
            "filter_dead": "true",
            "mature": "false",
        }
        source = self._source or filters.source
        if source:
            params["source"] = source

        try:
            response = await self._transport.get(
                "/images/", params=params, headers=bearer_auth_header(token)
            )
        except RemoteError as e:
            if e.status_code == 401:
                logger.warning("Openverse rejected token, invalidating", provider=self.key)
                self._tokens.invalidate()
            raise
        return response.json()

    def _parse(self, payload: Any) -> list[ImageResult]:
        return [self._normalize(item) for item in payload.get("results") or []]

    def _normalize(self, item: dict[str, Any]) -> ImageResult:
        is_rawpixel = self._source == RAWPIXEL
        creator = (item.get("creator") or "").strip()
        if not creator:
            creator = "Rawpixel" if is_rawpixel else UNKNOWN_CREATOR

        if is_rawpixel:
            attribution = "Photo credit: Rawpixel.com"
        else:
            attribution = f"by {creator} via {self.source_name}"

        proxied = self._proxied(item.get("url") or "")
        thumbnail = item.get("thumbnail")
        return ImageResult(
            url=proxied,
            full_url=proxied,
            caption=item.get("title") or "Openverse Image",
            source_provider=self.key,
            thumbnail_url=self._proxied(thumbnail) if thumbnail else None,
            link=item.get("foreign_landing_url") or "",
            photographer=creator,
            photographer_url=item.get("creator_url"),
            attribution=attribution,
            width=item.get("width"),
            height=item.get("height"),
            license=item.get("license"),
            license_url=item.get("license_url"),
            tags=tuple(t["name"] for t in item.get("tags") or [] if t.get("name")),
            provider_id=str(item.get("id", "")),
        )
