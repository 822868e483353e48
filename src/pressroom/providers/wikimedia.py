"""
Wikimedia Commons image search.

No credentials. A search takes two MediaWiki API calls: a full-text
search in the File namespace, then an imageinfo lookup for the titles it
returned. Both run inside one retry attempt so a failed lookup retries
the pair.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

from pressroom.providers.base import ImageProvider, creator_or_unknown
from pressroom.types import ImageResult, SearchFilters

FILE_NAMESPACE = 6
THUMBNAIL_WIDTH = 300
COMMONS_WIKI_URL = "https://commons.wikimedia.org/wiki/"

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def strip_html(value: str) -> str:
    """Remove markup and collapse whitespace in extmetadata values."""
    return _SPACE_RE.sub(" ", _TAG_RE.sub("", value)).strip()


def _meta(metadata: dict[str, Any], *names: str) -> str | None:
    for name in names:
        value = (metadata.get(name) or {}).get("value")
        if isinstance(value, str) and value.strip():
            return value
    return None


class WikimediaProvider(ImageProvider):
    """Wikimedia Commons search adapter."""

    name = "wikiCommons"
    display_name = "Wikimedia Commons"
    base_url = "https://commons.wikimedia.org/w/api.php"

    @property
    def is_configured(self) -> bool:
        return True

    async def _fetch(
        self, query: str, page: int, per_page: int, filters: SearchFilters
    ) -> Any:
        search = await self._transport.get(
            "",
            params={
                "action": "query",
                "format": "json",
                "list": "search",
                "srsearch": query,
                "srnamespace": FILE_NAMESPACE,
                "srlimit": per_page,
                "sroffset": (page - 1) * per_page,
            },
        )
        hits = (search.json().get("query") or {}).get("search") or []
        if not hits:
            return {"hits": [], "pages": {}}

        info = await self._transport.get(
            "",
            params={
                "action": "query",
                "format": "json",
                "titles": "|".join(hit["title"] for hit in hits),
                "prop": "imageinfo",
                "iiprop": "url|size|mime|extmetadata",
                "iilimit": 1,
                "iiurlwidth": THUMBNAIL_WIDTH,
            },
        )
        pages = (info.json().get("query") or {}).get("pages") or {}
        return {"hits": hits, "pages": pages}

    def _parse(self, payload: Any) -> list[ImageResult]:
        pages = payload["pages"]
        return [self._normalize(hit, pages.get(str(hit.get("pageid")), {})) for hit in payload["hits"]]

    def _normalize(self, hit: dict[str, Any], page: dict[str, Any]) -> ImageResult:
        title: str = hit["title"]
        page_url = COMMONS_WIKI_URL + quote(title.replace(" ", "_"))
        image_info = (page.get("imageinfo") or [{}])[0]
        metadata = image_info.get("extmetadata") or {}

        author_html = _meta(metadata, "Artist", "Creator")
        author = creator_or_unknown(strip_html(author_html) if author_html else None)
        license_name = _meta(metadata, "LicenseShortName", "License") or "Unknown license"
        image_url = image_info.get("url") or page_url

        return ImageResult(
            url=image_url,
            full_url=image_url,
            caption=title.removeprefix("File:"),
            source_provider=self.name,
            thumbnail_url=image_info.get("thumburl") or image_url,
            link=image_info.get("descriptionurl") or page_url,
            photographer=author,
            attribution=f"Photo by {author}, via Wikimedia Commons, licensed under {license_name}",
            width=image_info.get("width"),
            height=image_info.get("height"),
            license=license_name,
            license_url=_meta(metadata, "LicenseUrl"),
            provider_id=str(hit.get("pageid", "")),
        )
