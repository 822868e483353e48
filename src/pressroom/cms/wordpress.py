"""WordPress REST API (wp/v2) 客户端。

WordPress REST API v2 client.

Authenticates with an application password over Basic auth. Every call is
admitted by the shared rate limiter under `wordpress-api:{site}` and run
through the retry policy; ClassifiedError reaches the caller unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from pressroom.errors import ClassifiedError, ErrorCode
from pressroom.resilience import RetryPolicy, with_retry
from pressroom.telemetry import get_logger
from pressroom.transport import HttpTransport, basic_auth_header
from pressroom.types import MediaPage, PostInput, PostPage

if TYPE_CHECKING:
    from collections.abc import Mapping

    import httpx

    from pressroom.resilience import SlidingWindowRateLimiter

logger = get_logger("pressroom.cms.wordpress")

API_PREFIX = "/wp-json/wp/v2"
CMS_TIMEOUT = 120.0
TERMS_PER_PAGE = 100


def validate_wordpress_url(url: str) -> bool:
    """Whether a site URL is a usable http(s) URL."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _total(response: httpx.Response, header: str) -> int:
    try:
        return int(response.headers.get(header, "0"))
    except ValueError:
        return 0


def _encode_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """WordPress takes list filters (categories, tags) as comma separated ids."""
    encoded: dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        encoded[key] = value
    return encoded


class WordPressClient:
    """Client for one WordPress site.

    Example:
        >>> wp = WordPressClient("https://blog.example.com", "editor", app_password)
        >>> page = await wp.get_posts({"search": "launch"})
        >>> post = await wp.create_post(PostInput(title="Hello", status="draft"))
    """

    def __init__(
        self,
        site_url: str,
        username: str,
        app_password: str,
        *,
        client: httpx.AsyncClient | None = None,
        retry: RetryPolicy | None = None,
        limiter: SlidingWindowRateLimiter | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            site_url: Site root, e.g. https://blog.example.com
            username: WordPress user name
            app_password: Application password for that user
            client: Shared httpx client
            retry: Retry policy for API calls
            limiter: Shared admission limiter
            timeout: Request timeout in seconds (default 120)
        """
        self._site_url = site_url.rstrip("/")
        self._retry = retry or RetryPolicy()
        self._limiter = limiter
        self._transport = HttpTransport(
            f"{self._site_url}{API_PREFIX}",
            headers={"Accept": "application/json", **basic_auth_header(username, app_password)},
            timeout=timeout if timeout is not None else CMS_TIMEOUT,
            client=client,
        )

    @property
    def site_url(self) -> str:
        return self._site_url

    @property
    def admission_key(self) -> str:
        return f"wordpress-api:{self._site_url}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._limiter is not None:
            self._limiter.ensure_allowed(self.admission_key)
        return await with_retry(
            lambda: self._transport.request(method, path, **kwargs), policy=self._retry
        )

    def _decode(self, response: httpx.Response) -> Any:
        """Parse a JSON body; HTML from maintenance pages or security plugins becomes a ClassifiedError."""
        try:
            return response.json()
        except ValueError as e:
            logger.warning(
                "WordPress returned a non-JSON body",
                site=self._site_url,
                status=response.status_code,
                content_type=response.headers.get("content-type", ""),
            )
            raise ClassifiedError(
                ErrorCode.UNKNOWN_ERROR,
                "WordPress returned an unexpected response. The site may be in maintenance mode.",
                http_status=response.status_code,
            ) from e

    # Users

    async def test_connection(self) -> bool:
        """Check credentials against /users/me."""
        try:
            await self._request("GET", "/users/me")
        except ClassifiedError as e:
            logger.warning(
                "WordPress connection test failed", site=self._site_url, code=e.code.value
            )
            return False
        return True

    async def get_current_user(self) -> dict[str, Any]:
        response = await self._request("GET", "/users/me")
        return self._decode(response)

    # Posts

    async def get_posts(self, params: Mapping[str, Any] | None = None) -> PostPage:
        """List posts.

        Defaults to 10 per page, page 1, with embedded media. An absent
        status (or "all") lists both published posts and drafts.
        """
        params = dict(params or {})
        query: dict[str, Any] = {"per_page": 10, "page": 1, "_embed": "true", **params}
        if not params.get("status") or params["status"] == "all":
            query["status"] = "publish,draft"

        response = await self._request("GET", "/posts", params=_encode_params(query))
        return PostPage(
            posts=self._decode(response),
            total=_total(response, "x-wp-total"),
            total_pages=_total(response, "x-wp-totalpages"),
        )

    async def get_post(self, post_id: int, context: str = "edit") -> dict[str, Any]:
        response = await self._request(
            "GET", f"/posts/{post_id}", params={"context": context, "_embed": "true"}
        )
        return self._decode(response)

    async def create_post(self, post: PostInput) -> dict[str, Any]:
        response = await self._request("POST", "/posts", json=post.to_payload())
        created = self._decode(response)
        logger.info("Post created", site=self._site_url, post_id=created.get("id"))
        return created

    async def update_post(self, post_id: int, post: PostInput) -> dict[str, Any]:
        """Update only the fields set on `post`."""
        response = await self._request("PUT", f"/posts/{post_id}", json=post.to_payload())
        return self._decode(response)

    async def delete_post(self, post_id: int) -> bool:
        """Permanently delete a post, bypassing the trash."""
        response = await self._request("DELETE", f"/posts/{post_id}", params={"force": "true"})
        return response.status_code == 200

    async def get_rendered_content(self, post_id: int) -> str:
        post = await self.get_post(post_id, context="view")
        return (post.get("content") or {}).get("rendered", "")

    async def process_shortcodes(self, content: str) -> str:
        """Expand shortcodes through the site's custom endpoint.

        Sites without the endpoint get the content back unchanged.
        """
        try:
            response = await self._request(
                "POST", "/posts/process-shortcodes", json={"content": content}
            )
        except ClassifiedError as e:
            if e.code is not ErrorCode.NOT_FOUND:
                raise
            logger.warning("Shortcode endpoint not available", site=self._site_url)
            return content
        return self._decode(response).get("processed_content") or content

    # Media

    async def get_media(self, params: Mapping[str, Any] | None = None) -> MediaPage:
        query: dict[str, Any] = {"per_page": 20, "page": 1, **(params or {})}
        response = await self._request("GET", "/media", params=_encode_params(query))
        return MediaPage(
            media=self._decode(response),
            total=_total(response, "x-wp-total"),
            total_pages=_total(response, "x-wp-totalpages"),
        )

    async def upload_media(
        self, filename: str, content: bytes, content_type: str = "image/jpeg"
    ) -> dict[str, Any]:
        """Upload a file to the media library as multipart form data."""
        response = await self._request(
            "POST", "/media", files={"file": (filename, content, content_type)}
        )
        uploaded = self._decode(response)
        logger.info(
            "Media uploaded",
            site=self._site_url,
            media_id=uploaded.get("id"),
            size=len(content),
        )
        return uploaded

    async def delete_media(self, media_id: int) -> bool:
        response = await self._request(
            "DELETE", f"/media/{media_id}", params={"force": "true"}
        )
        return response.status_code == 200

    # Terms

    async def get_categories(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/categories", params={"per_page": TERMS_PER_PAGE})
        return self._decode(response)

    async def create_category(self, name: str, description: str = "") -> dict[str, Any]:
        response = await self._request(
            "POST", "/categories", json={"name": name, "description": description}
        )
        return self._decode(response)

    async def get_tags(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/tags", params={"per_page": TERMS_PER_PAGE})
        return self._decode(response)

    async def create_tag(self, name: str, description: str = "") -> dict[str, Any]:
        response = await self._request(
            "POST", "/tags", json={"name": name, "description": description}
        )
        return self._decode(response)

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> WordPressClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
