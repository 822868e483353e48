"""
Shared types for pressroom.

- ImageResult, SearchFilters, SearchPage: normalized image search
- PostInput, PostPage, MediaPage, SiteCredentials: CMS boundary
"""

from pressroom.types.cms import MediaPage, PostInput, PostPage, SiteCredentials
from pressroom.types.image import UNKNOWN_CREATOR, ImageResult, SearchFilters, SearchPage

__all__ = [
    "UNKNOWN_CREATOR",
    "ImageResult",
    "MediaPage",
    "PostInput",
    "PostPage",
    "SearchFilters",
    "SearchPage",
    "SiteCredentials",
]
