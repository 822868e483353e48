"""Pexels image search. The key goes in the Authorization header as-is."""

from __future__ import annotations

from typing import Any

from pressroom.providers.base import ImageProvider, creator_or_unknown
from pressroom.transport import resolve_credential
from pressroom.types import ImageResult, SearchFilters


class PexelsProvider(ImageProvider):
    """Pexels search adapter."""

    name = "pexels"
    display_name = "Pexels"
    base_url = "https://api.pexels.com/v1"

    def __init__(self, api_key: str | None = None, **kwargs: Any) -> None:
        self._api_key = resolve_credential("PEXELS_API_KEY", api_key)
        super().__init__(**kwargs)

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    def _default_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = self._api_key
        return headers

    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        params: dict[str, Any] = {"query": query, "page": page, "per_page": per_page}
        if filters.orientation:
            params["orientation"] = filters.orientation
        if filters.colors:
            params["color"] = filters.colors
        if filters.lang:
            params["locale"] = filters.lang
        response = await self._transport.get("/search", params=params)
        return response.json()

    def _parse(self, payload: Any) -> list[ImageResult]:
        results = []
        for photo in payload.get("photos") or []:
            src = photo.get("src") or {}
            photographer = creator_or_unknown(photo.get("photographer"))
            primary = src.get("medium") or src.get("original") or ""
            results.append(
                ImageResult(
                    url=primary,
                    full_url=src.get("large2x") or primary,
                    caption=photo.get("alt") or "Pexels Image",
                    source_provider=self.name,
                    thumbnail_url=src.get("small"),
                    link=photo.get("url") or "",
                    photographer=photographer,
                    photographer_url=photo.get("photographer_url"),
                    attribution=f"Photo by {photographer} on Pexels",
                    width=photo.get("width"),
                    height=photo.get("height"),
                    license="Pexels License",
                    provider_id=str(photo.get("id", "")),
                )
            )
        return results
