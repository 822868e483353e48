"""
CMS integration - WordPress REST client and connected-site storage.
"""

from pressroom.cms.sites import InMemorySiteStore, SiteStore
from pressroom.cms.wordpress import WordPressClient, validate_wordpress_url

__all__ = [
    "InMemorySiteStore",
    "SiteStore",
    "WordPressClient",
    "validate_wordpress_url",
]
