"""Tests for transport module."""

import errno
import os
from unittest.mock import patch

import httpx
import pytest
from pytest_httpx import HTTPXMock

from pressroom.errors import ErrorCode, RemoteError, TransportError, classify
from pressroom.transport import (
    HttpTransport,
    basic_auth_header,
    bearer_auth_header,
    resolve_credential,
    resolve_timeout,
)


class TestResolveCredential:
    """Tests for credential resolution."""

    def test_explicit_value(self) -> None:
        """Test explicit value takes precedence."""
        with patch.dict(os.environ, {"PEXELS_API_KEY": "from-env"}):
            assert resolve_credential("PEXELS_API_KEY", "explicit") == "explicit"

    def test_env_variable(self) -> None:
        with patch.dict(os.environ, {"PEXELS_API_KEY": "from-env"}):
            assert resolve_credential("PEXELS_API_KEY") == "from-env"

    def test_blank_counts_as_missing(self) -> None:
        with patch.dict(os.environ, {"PEXELS_API_KEY": "   "}):
            assert resolve_credential("PEXELS_API_KEY", "") is None

    def test_no_value_found(self) -> None:
        """Test when nothing is configured."""
        with patch.dict(os.environ, {}, clear=True):
            assert resolve_credential("NONEXISTENT_KEY") is None


class TestAuthHeaders:
    def test_basic(self) -> None:
        assert basic_auth_header("editor", "pw") == {"Authorization": "Basic ZWRpdG9yOnB3"}

    def test_bearer(self) -> None:
        assert bearer_auth_header("tok") == {"Authorization": "Bearer tok"}


class TestResolveTimeout:
    def test_explicit_wins(self) -> None:
        with patch.dict(os.environ, {"PRESSROOM_HTTP_TIMEOUT_SECS": "5"}):
            assert resolve_timeout(2.0, "PRESSROOM_HTTP_TIMEOUT_SECS", 30.0) == 2.0

    def test_env_then_default(self) -> None:
        with patch.dict(os.environ, {"PRESSROOM_HTTP_TIMEOUT_SECS": "5"}):
            assert resolve_timeout(None, "PRESSROOM_HTTP_TIMEOUT_SECS", 30.0) == 5.0
        with patch.dict(os.environ, {"PRESSROOM_HTTP_TIMEOUT_SECS": "soon"}):
            assert resolve_timeout(None, "PRESSROOM_HTTP_TIMEOUT_SECS", 30.0) == 30.0


class TestHttpTransport:
    """Tests for HttpTransport."""

    @pytest.mark.asyncio
    async def test_relative_and_absolute_paths(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url="https://api.example.com/v1/search?q=cat", json={"ok": True})
        httpx_mock.add_response(url="https://other.example.com/x", json={"ok": True})
        httpx_mock.add_response(url="https://api.example.com/v1", json={"ok": True})

        async with HttpTransport("https://api.example.com/v1/", headers={"X-Key": "k"}) as transport:
            await transport.get("/search", params={"q": "cat"})
            await transport.get("https://other.example.com/x")
            await transport.get("")

        first = httpx_mock.get_requests()[0]
        assert first.headers["X-Key"] == "k"
        assert first.headers["User-Agent"].startswith("pressroom/")

    @pytest.mark.asyncio
    async def test_error_status_raises_remote_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url="https://api.example.com/x",
            status_code=429,
            headers={"Retry-After": "12"},
            json={"error": {"message": "Slow down"}},
        )

        async with HttpTransport("https://api.example.com") as transport:
            with pytest.raises(RemoteError) as exc_info:
                await transport.get("/x")

        error = exc_info.value
        assert error.status_code == 429
        assert error.headers["retry-after"] == "12"
        assert error.message == "Slow down"

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

        async with HttpTransport("https://api.example.com") as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.get("/x")

        assert exc_info.value.kind == TransportError.TIMEOUT

    @pytest.mark.asyncio
    async def test_connect_error_raises_transport_error(self, httpx_mock: HTTPXMock) -> None:
        failure = httpx.ConnectError("All connection attempts failed")
        failure.__cause__ = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
        httpx_mock.add_exception(failure)

        async with HttpTransport("https://api.example.com") as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.get("/x")

        assert exc_info.value.kind == TransportError.CONNECTION_REFUSED

    @pytest.mark.asyncio
    async def test_unresolvable_host_is_not_refused(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_exception(httpx.ConnectError("[Errno -2] Name or service not known"))

        async with HttpTransport("https://wp.exmaple.org") as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.get("/x")

        assert exc_info.value.kind == TransportError.OTHER
        assert classify(exc_info.value).code is ErrorCode.UNKNOWN_ERROR

    @pytest.mark.asyncio
    async def test_response_hook_sees_error_responses(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url="https://api.example.com/x", status_code=500)
        seen: list[int] = []

        async with HttpTransport("https://api.example.com", on_response=lambda r: seen.append(r.status_code)) as t:
            with pytest.raises(RemoteError):
                await t.get("/x")

        assert seen == [500]

    @pytest.mark.asyncio
    async def test_shared_client_not_closed(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(url="https://api.example.com/x")

        async with httpx.AsyncClient() as client:
            transport = HttpTransport("https://api.example.com", client=client)
            await transport.get("/x")
            await transport.close()
            assert client.is_closed is False
