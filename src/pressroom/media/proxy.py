"""
Media passthrough proxy.

Some image hosts behind Openverse refuse hotlinking or need credentials,
so the editor loads their images through `/api/proxy-image?url=...`.
Every target (and every redirect hop) is checked before any request is
made: http(s) only, no localhost, no private/loopback/link-local
addresses either literally or after DNS resolution, and, when an
allow-list is configured, only listed hosts.
"""

from __future__ import annotations

import asyncio
import ipaddress
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import quote, urljoin, urlsplit

from pressroom.errors import MediaProxyError
from pressroom.resilience import RetryPolicy, with_retry
from pressroom.telemetry import get_logger
from pressroom.transport import HttpTransport, bearer_auth_header

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    import httpx

    from pressroom.transport import TokenCache

logger = get_logger("pressroom.media.proxy")

PROXY_PATH = "/api/proxy-image"
OPENVERSE_API_HOST = "api.openverse.org"
OPENVERSE_ORIGIN = "https://openverse.org"
DEFAULT_CONTENT_TYPE = "image/jpeg"
MAX_REDIRECTS = 5

DEFAULT_ALLOWED_HOSTS: frozenset[str] = frozenset(
    {
        "inaturalist-open-data.s3.amazonaws.com",
        "cdn.stocksnap.io",
        "live.staticflickr.com",
        "farm.staticflickr.com",
        "images.rawpixel.com",
        "cdn.rawpixel.com",
        OPENVERSE_API_HOST,
    }
)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/webp,image/apng,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Access-Control-Allow-Headers": "Content-Type",
    "Cache-Control": "public, max-age=86400",
}

_BLOCKED_PREFIXES = ("127.", "10.", "172.", "192.168.")


def rewrite_url(url: str, endpoint: str = PROXY_PATH) -> str:
    """Route an image URL through the proxy endpoint."""
    return f"{endpoint}?url={quote(url, safe='')}"


def is_blocked_address(address: str) -> bool:
    """Whether an address must never be fetched by the proxy.

    The dotted prefixes are matched textually, which also blocks the whole
    172.0.0.0/8 range and not only 172.16.0.0/12.
    """
    if address.startswith(_BLOCKED_PREFIXES):
        return True
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    return ip.is_loopback or ip.is_private or ip.is_link_local or ip.is_unspecified


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


async def resolve_host(host: str) -> list[str]:
    """Resolve a hostname to every address it maps to."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None)
    return [str(info[4][0]) for info in infos]


@dataclass(frozen=True)
class ProxiedMedia:
    """Upstream image bytes plus the headers to send back to the browser.

    Attributes:
        content: Raw image bytes
        content_type: Upstream content type, image/jpeg when absent
        headers: Response headers including CORS and caching
    """

    content: bytes
    content_type: str
    headers: dict[str, str] = field(default_factory=dict)


class MediaProxy:
    """Validated image passthrough.

    Example:
        >>> proxy = MediaProxy(token_cache=openverse_tokens)
        >>> proxy.rewrite("https://live.staticflickr.com/1/2.jpg")
        '/api/proxy-image?url=https%3A%2F%2Flive.staticflickr.com%2F1%2F2.jpg'
        >>> media = await proxy.fetch("https://live.staticflickr.com/1/2.jpg")
    """

    def __init__(
        self,
        *,
        token_cache: TokenCache | None = None,
        allowed_hosts: Iterable[str] | None = DEFAULT_ALLOWED_HOSTS,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        retry: RetryPolicy | None = None,
        resolver: Callable[[str], Awaitable[list[str]]] = resolve_host,
        endpoint: str = PROXY_PATH,
    ) -> None:
        """Initialize the proxy.

        Args:
            token_cache: Openverse token cache, used for api.openverse.org
            allowed_hosts: Hosts the proxy may fetch from; None allows any
                public host
            client: Shared httpx client
            timeout: Upstream request timeout in seconds
            retry: Retry policy for upstream fetches
            resolver: Returns the addresses a hostname resolves to
            endpoint: Path the rewritten URLs point at
        """
        self._token_cache = token_cache
        self._allowed_hosts = (
            frozenset(h.lower() for h in allowed_hosts) if allowed_hosts is not None else None
        )
        self._transport = HttpTransport(headers=BROWSER_HEADERS, client=client, timeout=timeout)
        self._retry = retry or RetryPolicy()
        self._resolver = resolver
        self._endpoint = endpoint

    def rewrite(self, url: str) -> str:
        return rewrite_url(url, self._endpoint)

    def _host_allowed(self, host: str) -> bool:
        if self._allowed_hosts is None:
            return True
        return any(host == h or host.endswith(f".{h}") for h in self._allowed_hosts)

    async def validate_url(self, url: str) -> str:
        """Check a target URL and return its lower-cased hostname.

        Raises:
            MediaProxyError: If the URL may not be fetched
        """
        if not url:
            raise MediaProxyError("Missing image URL")
        try:
            parts = urlsplit(url)
            host = (parts.hostname or "").lower()
        except ValueError as e:
            raise MediaProxyError("Invalid image URL", url=url) from e

        if parts.scheme not in ("http", "https"):
            raise MediaProxyError("Only http and https URLs can be proxied", url=url)
        if not host:
            raise MediaProxyError("Image URL has no host", url=url)
        if host == "localhost" or host.endswith(".localhost"):
            raise MediaProxyError("Local addresses cannot be proxied", url=url)
        if is_blocked_address(host):
            raise MediaProxyError("Private addresses cannot be proxied", url=url)
        if not self._host_allowed(host):
            raise MediaProxyError("Unsupported image source", url=url)

        if not _is_ip_literal(host):
            try:
                addresses = await self._resolver(host)
            except OSError as e:
                raise MediaProxyError(f"Could not resolve {host}", url=url) from e
            if any(is_blocked_address(address) for address in addresses):
                raise MediaProxyError("Image host resolves to a private address", url=url)
        return host

    async def _upstream_headers(self, host: str) -> dict[str, str]:
        if host == OPENVERSE_API_HOST:
            token = await self._token_cache.get_token() if self._token_cache else None
            return bearer_auth_header(token) if token else {}
        return {"Referer": f"{OPENVERSE_ORIGIN}/", "Origin": OPENVERSE_ORIGIN}

    async def _get(self, url: str, host: str) -> httpx.Response:
        headers = await self._upstream_headers(host)
        return await self._transport.get(url, headers=headers, follow_redirects=False)

    async def fetch(self, url: str) -> ProxiedMedia:
        """Fetch an image for the browser.

        Redirects are followed by hand so every hop is validated.

        Raises:
            MediaProxyError: If the URL or a redirect target fails validation
            ClassifiedError: If the upstream fetch fails after retries
        """
        target = url
        for _ in range(MAX_REDIRECTS + 1):
            host = await self.validate_url(target)
            hop = target
            response = await with_retry(lambda: self._get(hop, host), policy=self._retry)
            location = response.headers.get("location")
            if not response.is_redirect or not location:
                break
            target = urljoin(target, location)
        else:
            raise MediaProxyError("Too many redirects", url=url)

        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        logger.debug("Proxied image", url=url, content_type=content_type, size=len(response.content))
        return ProxiedMedia(
            content=response.content,
            content_type=content_type,
            headers={"Content-Type": content_type, **CORS_HEADERS},
        )

    async def close(self) -> None:
        await self._transport.close()
