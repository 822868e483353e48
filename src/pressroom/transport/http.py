"""HTTP 传输层：基于 httpx 的异步 HTTP 客户端，统一超时与错误转换。

HTTP transport using httpx for async requests.

Provides:
- Fixed per-request timeouts
- Shared or owned connection pools
- Conversion of httpx failures into TransportError / RemoteError
- A response hook, called for every response including errors
"""

from __future__ import annotations

import os
from contextlib import suppress
from typing import TYPE_CHECKING, Any

import httpx

from pressroom.errors import RemoteError, TransportError, extract_error_message, is_connection_refused

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


# Default timeouts
DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        try:
            from importlib.metadata import PackageNotFoundError, version

            _UA_VERSION = version("pressroom")
        except PackageNotFoundError:
            _UA_VERSION = "0.1.0"
    return _UA_VERSION


def resolve_timeout(explicit: float | None, env_var: str, default: float) -> float:
    """Resolve a timeout: explicit value, then environment variable, then default."""
    if explicit is not None:
        return explicit
    env_timeout = os.getenv(env_var)
    if env_timeout:
        with suppress(ValueError):
            return float(env_timeout)
    return default


def build_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create an httpx client with the library defaults."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=DEFAULT_CONNECT_TIMEOUT),
        headers={"User-Agent": f"pressroom/{_get_ua_version()}"},
        follow_redirects=True,
    )


class HttpTransport:
    """HTTP transport for one external service.

    Example:
        >>> transport = HttpTransport("https://api.pexels.com/v1", headers={"Authorization": key})
        >>> response = await transport.get("/search", params={"query": "cat"})
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        on_response: Callable[[httpx.Response], None] | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            base_url: Prefix for relative request paths
            headers: Headers sent with every request
            timeout: Request timeout in seconds
            client: Shared httpx client; created lazily (and owned) when omitted
            on_response: Called with every response before status checks
        """
        self._base_url = base_url.rstrip("/")
        self._headers = dict(headers or {})
        self._timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self._client = client
        self._owns_client = client is None
        self._on_response = on_response

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = build_client(self._timeout)
        return self._client

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")) or not self._base_url:
            return path
        if not path:
            return self._base_url
        return f"{self._base_url}/{path.lstrip('/')}"

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool | None = None,
    ) -> httpx.Response:
        """Make an HTTP request.

        Args:
            method: HTTP method
            path: Request path (relative to base URL) or absolute URL
            params: Query parameters
            json: JSON body
            data: Form body
            files: Multipart files
            content: Raw request body
            headers: Additional headers
            follow_redirects: Override the client redirect policy

        Returns:
            HTTP response with a 2xx/3xx status

        Raises:
            TransportError: On network/connection errors
            RemoteError: On error responses (4xx, 5xx)
        """
        client = self._get_client()
        url = self._build_url(path)
        request_headers = {**self._headers, **(headers or {})}
        extra: dict[str, Any] = {}
        if follow_redirects is not None:
            extra["follow_redirects"] = follow_redirects

        try:
            response = await client.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                content=content,
                headers=request_headers,
                timeout=self._timeout,
                **extra,
            )
        except httpx.ConnectError as e:
            kind = TransportError.CONNECTION_REFUSED if is_connection_refused(e) else TransportError.OTHER
            raise TransportError(
                f"Connection failed: {e}",
                kind=kind,
                url=url,
                cause=e,
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {e}",
                kind=TransportError.TIMEOUT,
                url=url,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP error: {e}", url=url, cause=e) from e

        if self._on_response is not None:
            self._on_response(response)

        if response.status_code >= 400:
            body = None
            with suppress(ValueError):
                body = response.json()
            raise RemoteError(
                extract_error_message(body) or f"HTTP {response.status_code}",
                status_code=response.status_code,
                headers=dict(response.headers),
                body=body,
                url=url,
            )

        return response

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool | None = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request(
            "GET", path, params=params, headers=headers, follow_redirects=follow_redirects
        )

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Make a POST request."""
        return await self.request(
            "POST", path, json=json, data=data, files=files, headers=headers
        )

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
