"""
CMS request/response shapes.

Posts, media and terms are passed through as the JSON objects WordPress
returns; only request bodies and paginated envelopes are modelled.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class PostInput(BaseModel):
    """Fields accepted when creating or updating a post."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    status: str | None = Field(default=None, description="publish, draft, pending, private")
    featured_media: int | None = None
    categories: list[int] | None = None
    tags: list[int] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Only the fields that were set, as WordPress expects them."""
        return self.model_dump(exclude_none=True)


class PostPage(BaseModel):
    """Paginated posts with totals from X-WP-Total / X-WP-TotalPages."""

    posts: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    total_pages: int = 0


class MediaPage(BaseModel):
    """Paginated media library items."""

    media: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    total_pages: int = 0


class SiteCredentials(BaseModel):
    """A connected WordPress site."""

    model_config = ConfigDict(frozen=True)

    site_id: str
    url: str
    username: str
    app_password: SecretStr
