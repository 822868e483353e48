"""
Unsplash image search.

Key passed as the `client_id` query parameter. Unsplash requires a hit on
the photo's download_location whenever a photo is actually used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pressroom.errors import PressroomError
from pressroom.providers.base import ImageProvider, creator_or_unknown, logger
from pressroom.transport import resolve_credential
from pressroom.types import ImageResult, SearchFilters

if TYPE_CHECKING:
    import httpx

UTM_PARAMS = {
    "utm_source": "wordpress-article-editor",
    "utm_medium": "referral",
    "utm_campaign": "image-attribution",
}


def with_utm(url: str) -> str:
    """Add the referral UTM parameters Unsplash asks for on attribution links."""
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    query.update(UTM_PARAMS)
    return urlunsplit(parts._replace(query=urlencode(query)))


class UnsplashProvider(ImageProvider):
    """Unsplash search adapter."""

    name = "unsplash"
    display_name = "Unsplash"
    base_url = "https://api.unsplash.com"

    def __init__(self, access_key: str | None = None, **kwargs: Any) -> None:
        self._access_key = resolve_credential("UNSPLASH_ACCESS_KEY", access_key)
        super().__init__(**kwargs)

    @property
    def is_configured(self) -> bool:
        return self._access_key is not None

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "Accept-Version": "v1"}

    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        params: dict[str, Any] = {
            "query": query,
            "page": page,
            "per_page": per_page,
            "client_id": self._access_key,
        }
        if filters.orientation:
            params["orientation"] = filters.orientation
        if filters.colors:
            params["color"] = filters.colors
        if filters.order:
            params["order_by"] = filters.order
        response = await self._transport.get("/search/photos", params=params)
        return response.json()

    def _parse(self, payload: Any) -> list[ImageResult]:
        return [self._normalize(photo) for photo in payload.get("results") or []]

    def _normalize(self, photo: dict[str, Any]) -> ImageResult:
        urls = photo.get("urls") or {}
        links = photo.get("links") or {}
        user = photo.get("user") or {}
        photographer = creator_or_unknown(user.get("name"))
        profile = (user.get("links") or {}).get("html")
        primary = urls.get("small") or urls.get("regular") or ""

        return ImageResult(
            url=primary,
            full_url=urls.get("full") or primary,
            caption=photo.get("alt_description") or photo.get("description") or "Unsplash Image",
            source_provider=self.name,
            thumbnail_url=urls.get("thumb"),
            link=links.get("html") or "",
            photographer=photographer,
            photographer_url=with_utm(profile) if profile else None,
            attribution=f"Photo by {photographer} on Unsplash",
            width=photo.get("width"),
            height=photo.get("height"),
            license="Unsplash License",
            tags=tuple(t["title"] for t in photo.get("tags") or [] if t.get("title")),
            provider_id=str(photo.get("id", "")),
            download_location=links.get("download_location"),
        )

    async def track_download(self, download_location: str) -> bool:
        """Register a download with Unsplash.

        Tracking only feeds photographer statistics, so failures are
        logged and reported as False rather than raised.
        """
        if not self.is_configured:
            logger.warning("Unsplash download tracking skipped, no access key")
            return False
        try:
            response: httpx.Response = await self._transport.get(
                download_location,
                headers={"Authorization": f"Client-ID {self._access_key}"},
            )
        except PressroomError as e:
            logger.warning("Unsplash download tracking failed", error=str(e))
            return False
        return response.is_success
