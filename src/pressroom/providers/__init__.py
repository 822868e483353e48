"""
Image search provider adapters.

Each adapter maps one provider's search API onto ImageResult:
- UnsplashProvider: client_id query auth, download tracking
- PexelsProvider: Authorization header key
- PixabayProvider: key query param, rate-limit-header driven queue
- OpenverseProvider: OAuth2 client credentials, optional source pinning
- WikimediaProvider: no credentials, search + imageinfo lookup
"""

from pressroom.providers.base import ImageProvider, creator_or_unknown
from pressroom.providers.openverse import (
    OPENVERSE_TOKEN_URL,
    SOURCE_NAMES,
    OpenverseProvider,
)
from pressroom.providers.pexels import PexelsProvider
from pressroom.providers.pixabay import PixabayProvider, clamp_per_page
from pressroom.providers.unsplash import UnsplashProvider, with_utm
from pressroom.providers.wikimedia import WikimediaProvider, strip_html

__all__ = [
    "OPENVERSE_TOKEN_URL",
    "SOURCE_NAMES",
    # Base
    "ImageProvider",
    # Providers
    "OpenverseProvider",
    "PexelsProvider",
    "PixabayProvider",
    "UnsplashProvider",
    "WikimediaProvider",
    # Helpers
    "clamp_per_page",
    "creator_or_unknown",
    "strip_html",
    "with_utm",
]
