"""
Pixabay image search.

Pixabay enforces a per-key quota and reports it through X-RateLimit-*
headers, so calls go through a ProviderRequestQueue that waits for the
reset instead of burning retries on 429s.
"""

from __future__ import annotations

from typing import Any

from pressroom.providers.base import ImageProvider, creator_or_unknown
from pressroom.transport import resolve_credential
from pressroom.types import ImageResult, SearchFilters

MIN_PER_PAGE = 3
MAX_PER_PAGE = 200


def clamp_per_page(per_page: int) -> int:
    """Pixabay rejects page sizes outside 3..200."""
    return max(MIN_PER_PAGE, min(MAX_PER_PAGE, per_page))


def _flag(value: bool) -> str:
    return "true" if value else "false"


class PixabayProvider(ImageProvider):
    """Pixabay search adapter."""

    name = "pixabay"
    display_name = "Pixabay"
    base_url = "https://pixabay.com/api"

    def __init__(self, api_key: str | None = None, **kwargs: Any) -> None:
        self._api_key = resolve_credential("PIXABAY_API_KEY", api_key)
        super().__init__(**kwargs)

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    def build_params(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> dict[str, Any]:
        """Query parameters for one search, defaults first then filters."""
        params: dict[str, Any] = {
            "key": self._api_key,
            "q": query,
            "page": page,
            "per_page": clamp_per_page(per_page),
            "image_type": filters.image_type or "photo",
            "safesearch": _flag(filters.safesearch if filters.safesearch is not None else True),
            "order": filters.order or "popular",
        }
        if filters.orientation:
            params["orientation"] = filters.orientation
        if filters.category:
            params["category"] = filters.category
        if filters.min_width:
            params["min_width"] = filters.min_width
        if filters.min_height:
            params["min_height"] = filters.min_height
        if filters.colors:
            params["colors"] = filters.colors
        if filters.editors_choice is not None:
            params["editors_choice"] = _flag(filters.editors_choice)
        if filters.lang:
            params["lang"] = filters.lang
        return params

    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        params = self.build_params(query, page, per_page, filters)
        response = await self._transport.get("/", params=params)
        return response.json()

    def _parse(self, payload: Any) -> list[ImageResult]:
        results = []
        for hit in payload.get("hits") or []:
            user = creator_or_unknown(hit.get("user"))
            user_id = hit.get("user_id")
            primary = hit.get("webformatURL") or ""
            tags = tuple(t.strip() for t in (hit.get("tags") or "").split(",") if t.strip())
            results.append(
                ImageResult(
                    url=primary,
                    full_url=hit.get("largeImageURL") or hit.get("imageURL") or primary,
                    caption=hit.get("tags") or "Pixabay Image",
                    source_provider=self.name,
                    thumbnail_url=hit.get("previewURL"),
                    link=hit.get("pageURL") or "",
                    photographer=user,
                    photographer_url=(
                        f"https://pixabay.com/users/{hit['user']}-{user_id}/"
                        if hit.get("user") and user_id is not None
                        else None
                    ),
                    attribution=f"Image by {user} from Pixabay",
                    width=hit.get("imageWidth"),
                    height=hit.get("imageHeight"),
                    license="Pixabay License",
                    license_url="https://pixabay.com/service/license-summary/",
                    tags=tags,
                    provider_id=str(hit.get("id", "")),
                )
            )
        return results
