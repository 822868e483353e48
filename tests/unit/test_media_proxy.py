"""Tests for the media passthrough proxy."""

import pytest
import pytest_asyncio
from pytest_httpx import HTTPXMock

from pressroom.errors import ClassifiedError, ErrorCode, MediaProxyError
from pressroom.media import CORS_HEADERS, DEFAULT_ALLOWED_HOSTS, MediaProxy, is_blocked_address, rewrite_url
from pressroom.resilience import RetryPolicy
from pressroom.transport import TokenCache

FLICKR_IMAGE = "https://live.staticflickr.com/65535/photo.jpg"


async def private_resolver(host: str) -> list[str]:
    return ["93.184.216.34", "10.1.2.3"]


async def failing_resolver(host: str) -> list[str]:
    raise OSError("Name or service not known")


@pytest_asyncio.fixture
async def proxy(resolver, no_retry: RetryPolicy):
    media_proxy = MediaProxy(resolver=resolver, retry=no_retry)
    yield media_proxy
    await media_proxy.close()


class TestHelpers:
    def test_rewrite_url_encodes_target(self) -> None:
        assert rewrite_url("https://a.b/c d.jpg?x=1") == "/api/proxy-image?url=https%3A%2F%2Fa.b%2Fc%20d.jpg%3Fx%3D1"

    def test_rewrite_url_custom_endpoint(self) -> None:
        assert rewrite_url("https://a.b/c", "/media").startswith("/media?url=")

    @pytest.mark.parametrize(
        "address",
        ["127.0.0.1", "10.0.0.8", "172.217.1.1", "192.168.1.1", "169.254.169.254", "::1", "fe80::1", "0.0.0.0"],
    )
    def test_blocked_addresses(self, address: str) -> None:
        assert is_blocked_address(address) is True

    @pytest.mark.parametrize("address", ["93.184.216.34", "8.8.8.8", "2606:4700::1111", "example.com"])
    def test_public_addresses(self, address: str) -> None:
        assert is_blocked_address(address) is False

    def test_default_allow_list(self) -> None:
        assert "live.staticflickr.com" in DEFAULT_ALLOWED_HOSTS
        assert "api.openverse.org" in DEFAULT_ALLOWED_HOSTS
        assert len(DEFAULT_ALLOWED_HOSTS) == 7


class TestValidateUrl:
    """Tests for MediaProxy.validate_url()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("url", "reason"),
        [
            ("", "Missing image URL"),
            ("ftp://live.staticflickr.com/a.jpg", "Only http and https URLs can be proxied"),
            ("file:///etc/passwd", "Only http and https URLs can be proxied"),
            ("https:///a.jpg", "Image URL has no host"),
            ("http://localhost/a.jpg", "Local addresses cannot be proxied"),
            ("http://127.0.0.1/a.jpg", "Private addresses cannot be proxied"),
            ("http://192.168.0.10/a.jpg", "Private addresses cannot be proxied"),
            ("http://[::1]/a.jpg", "Private addresses cannot be proxied"),
            ("https://evil.example.com/a.jpg", "Unsupported image source"),
        ],
    )
    async def test_rejected(self, proxy: MediaProxy, url: str, reason: str) -> None:
        with pytest.raises(MediaProxyError) as exc_info:
            await proxy.validate_url(url)
        assert exc_info.value.message == reason
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_allowed_host(self, proxy: MediaProxy) -> None:
        assert await proxy.validate_url(FLICKR_IMAGE) == "live.staticflickr.com"

    @pytest.mark.asyncio
    async def test_subdomain_of_allowed_host(self, proxy: MediaProxy) -> None:
        assert await proxy.validate_url("https://eu.images.rawpixel.com/a.jpg") == "eu.images.rawpixel.com"

    @pytest.mark.asyncio
    async def test_lookalike_host_rejected(self, proxy: MediaProxy) -> None:
        with pytest.raises(MediaProxyError):
            await proxy.validate_url("https://live.staticflickr.com.evil.net/a.jpg")

    @pytest.mark.asyncio
    async def test_host_resolving_to_private_address(self) -> None:
        proxy = MediaProxy(resolver=private_resolver)
        with pytest.raises(MediaProxyError) as exc_info:
            await proxy.validate_url(FLICKR_IMAGE)
        assert exc_info.value.message == "Image host resolves to a private address"

    @pytest.mark.asyncio
    async def test_unresolvable_host(self) -> None:
        proxy = MediaProxy(resolver=failing_resolver)
        with pytest.raises(MediaProxyError) as exc_info:
            await proxy.validate_url(FLICKR_IMAGE)
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_no_allow_list_accepts_any_public_host(self, resolver) -> None:
        proxy = MediaProxy(allowed_hosts=None, resolver=resolver)
        assert await proxy.validate_url("https://example.org/a.png") == "example.org"


class TestFetch:
    """Tests for MediaProxy.fetch()."""

    @pytest.mark.asyncio
    async def test_returns_bytes_with_cors_headers(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=FLICKR_IMAGE, content=b"\x89PNG", headers={"Content-Type": "image/png"})

        media = await proxy.fetch(FLICKR_IMAGE)

        assert media.content == b"\x89PNG"
        assert media.content_type == "image/png"
        assert media.headers["Content-Type"] == "image/png"
        for name, value in CORS_HEADERS.items():
            assert media.headers[name] == value

        request = httpx_mock.get_requests()[0]
        assert request.headers["Referer"] == "https://openverse.org/"
        assert request.headers["Origin"] == "https://openverse.org"
        assert request.headers["User-Agent"].startswith("Mozilla/5.0")

    @pytest.mark.asyncio
    async def test_missing_content_type_defaults_to_jpeg(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=FLICKR_IMAGE, content=b"bytes")

        media = await proxy.fetch(FLICKR_IMAGE)

        assert media.content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_rejected_url_never_requested(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        with pytest.raises(MediaProxyError):
            await proxy.fetch("http://169.254.169.254/latest/meta-data/")
        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_redirect_followed_after_validation(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        target = "https://farm.staticflickr.com/1/photo.jpg"
        httpx_mock.add_response(url=FLICKR_IMAGE, status_code=302, headers={"Location": target})
        httpx_mock.add_response(url=target, content=b"img", headers={"Content-Type": "image/jpeg"})

        media = await proxy.fetch(FLICKR_IMAGE)

        assert media.content == b"img"
        assert [str(r.url) for r in httpx_mock.get_requests()] == [FLICKR_IMAGE, target]

    @pytest.mark.asyncio
    async def test_redirect_to_private_address_blocked(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=FLICKR_IMAGE, status_code=301, headers={"Location": "http://10.0.0.5/admin"})

        with pytest.raises(MediaProxyError):
            await proxy.fetch(FLICKR_IMAGE)
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_redirect_loop_stops(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=FLICKR_IMAGE, status_code=302, headers={"Location": FLICKR_IMAGE}, is_reusable=True
        )

        with pytest.raises(MediaProxyError) as exc_info:
            await proxy.fetch(FLICKR_IMAGE)
        assert exc_info.value.message == "Too many redirects"
        assert len(httpx_mock.get_requests()) == 6

    @pytest.mark.asyncio
    async def test_upstream_failure_classified(self, proxy: MediaProxy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=FLICKR_IMAGE, status_code=404)

        with pytest.raises(ClassifiedError) as exc_info:
            await proxy.fetch(FLICKR_IMAGE)
        assert exc_info.value.code is ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_upstream_failure_retried(self, resolver, fast_retry: RetryPolicy, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url=FLICKR_IMAGE, status_code=503)
        httpx_mock.add_response(url=FLICKR_IMAGE, content=b"img")
        proxy = MediaProxy(resolver=resolver, retry=fast_retry)

        media = await proxy.fetch(FLICKR_IMAGE)
        await proxy.close()

        assert media.content == b"img"

    @pytest.mark.asyncio
    async def test_openverse_host_gets_bearer_token(
        self, resolver, no_retry: RetryPolicy, httpx_mock: HTTPXMock
    ) -> None:
        token_url = "https://api.openverse.org/v1/auth_tokens/token/"
        thumb = "https://api.openverse.org/v1/images/abc/thumb/"
        httpx_mock.add_response(url=token_url, json={"access_token": "ov-token", "expires_in": 3600})
        httpx_mock.add_response(url=thumb, content=b"thumb", headers={"Content-Type": "image/webp"})
        tokens = TokenCache(token_url, "cid", "secret")
        proxy = MediaProxy(token_cache=tokens, resolver=resolver, retry=no_retry)

        media = await proxy.fetch(thumb)
        await proxy.close()
        await tokens.close()

        request = httpx_mock.get_requests()[1]
        assert request.headers["Authorization"] == "Bearer ov-token"
        assert "Referer" not in request.headers
        assert media.content_type == "image/webp"
