"""
Connected-site credential storage.

Only the storage boundary lives here; durable backends (a database
table, a secrets manager) implement SiteStore elsewhere.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from pydantic import SecretStr

from pressroom.cms.wordpress import validate_wordpress_url
from pressroom.errors import ConfigurationError
from pressroom.types import SiteCredentials


class SiteStore(ABC):
    """Abstract base class for site credential stores."""

    @abstractmethod
    async def create(self, site_id: str, url: str, username: str, app_password: str) -> SiteCredentials:
        """Store credentials for a site.

        Args:
            site_id: Caller-chosen identifier
            url: Site root URL
            username: WordPress user name
            app_password: Application password

        Returns:
            The stored credentials

        Raises:
            ConfigurationError: If the URL is not http(s)
        """
        raise NotImplementedError

    @abstractmethod
    async def get(self, site_id: str) -> SiteCredentials | None:
        """Look up a site, None when unknown."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, site_id: str) -> bool:
        """Remove a site; True if it existed."""
        raise NotImplementedError

    @abstractmethod
    async def list(self) -> list[SiteCredentials]:
        """All stored sites."""
        raise NotImplementedError


class InMemorySiteStore(SiteStore):
    """Process-lifetime site store."""

    def __init__(self) -> None:
        self._sites: dict[str, SiteCredentials] = {}
        self._lock = asyncio.Lock()

    async def create(self, site_id: str, url: str, username: str, app_password: str) -> SiteCredentials:
        if not validate_wordpress_url(url):
            raise ConfigurationError(f"Invalid WordPress URL: {url}", setting="url")
        site = SiteCredentials(
            site_id=site_id,
            url=url.rstrip("/"),
            username=username,
            app_password=SecretStr(app_password),
        )
        async with self._lock:
            self._sites[site_id] = site
        return site

    async def get(self, site_id: str) -> SiteCredentials | None:
        return self._sites.get(site_id)

    async def delete(self, site_id: str) -> bool:
        async with self._lock:
            return self._sites.pop(site_id, None) is not None

    async def list(self) -> list[SiteCredentials]:
        return list(self._sites.values())

    def __len__(self) -> int:
        return len(self._sites)
