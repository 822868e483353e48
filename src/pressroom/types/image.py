"""
Normalized image search types.

Every provider adapter maps its own payload into ImageResult, so the
aggregator and the presentation boundary only ever see one shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_CREATOR = "Unknown"


class ImageResult(BaseModel):
    """One image from any provider. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str = Field(description="Primary (display-size) image URL")
    full_url: str = Field(alias="fullUrl", description="Largest available image URL")
    caption: str = Field(description="Title, alt text or tags")
    source_provider: str = Field(alias="source", description="Provider or source key")
    thumbnail_url: str | None = Field(default=None, alias="thumbnail")
    link: str = Field(default="", description="Landing page on the provider site")
    photographer: str | None = Field(default=None)
    photographer_url: str | None = Field(default=None, alias="photographerUrl")
    attribution: str = Field(description="Provider-specific attribution text")
    width: int | None = Field(default=None)
    height: int | None = Field(default=None)
    license: str | None = Field(default=None)
    license_url: str | None = Field(default=None, alias="licenseUrl")
    tags: tuple[str, ...] = Field(default=())
    provider_id: str = Field(alias="imageId", description="Identifier on the provider")
    download_location: str | None = Field(default=None, alias="downloadLocation")

    def to_api(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the editor expects."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["tags"] = list(self.tags)
        return data


class SearchFilters(BaseModel):
    """Optional provider filters. Providers ignore filters they do not support."""

    model_config = ConfigDict(frozen=True)

    license: str | None = None
    category: str | None = None
    source: str | None = None
    image_type: str | None = None
    orientation: str | None = None
    colors: str | None = None
    min_width: int | None = None
    min_height: int | None = None
    editors_choice: bool | None = None
    safesearch: bool | None = None
    order: str | None = None
    lang: str | None = None


class SearchPage(BaseModel):
    """One page of aggregated search results."""

    model_config = ConfigDict(frozen=True)

    images: tuple[ImageResult, ...] = ()
    page: int = 1
    has_more: bool = False

    def to_api(self) -> dict[str, Any]:
        return {
            "images": [image.to_api() for image in self.images],
            "hasMore": self.has_more,
            "page": self.page,
        }
