"""
OAuth2 client-credentials token cache.

Holds one bearer token per provider. A valid token is served without a
network call; on a miss the first caller performs the token exchange and
concurrent callers await that same in-flight fetch.
"""

from __future__ import annotations

import asyncio
import math
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pressroom.errors import PressroomError
from pressroom.telemetry import get_logger
from pressroom.transport.http import HttpTransport

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

logger = get_logger("pressroom.transport.token_cache")

DEFAULT_EXPIRES_IN_SECONDS = 3600


def _now_ms() -> float:
    return time.time() * 1000.0


def _parse_expires_in(raw: object) -> float | None:
    """Lifetime in seconds; absent means the default, anything unusable means None."""
    if raw is None:
        return float(DEFAULT_EXPIRES_IN_SECONDS)
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


@dataclass(frozen=True)
class CachedToken:
    """Bearer token with its absolute expiry.

    Attributes:
        value: The access token
        expires_at_ms: Epoch milliseconds after which the token is unusable
    """

    value: str
    expires_at_ms: int

    def is_valid(self, now_ms: float) -> bool:
        return now_ms < self.expires_at_ms


class TokenCache:
    """Client-credentials token cache for one OAuth provider.

    State machine: EMPTY -> (fetch succeeds) -> VALID until expiry ->
    (expiry or invalidate()) -> EMPTY. A failed fetch leaves the cache
    EMPTY and returns None; callers treat that as an authentication
    failure for the current call only.

    Example:
        >>> cache = TokenCache(token_url, client_id, client_secret)
        >>> token = await cache.get_token()
    """

    def __init__(
        self,
        token_url: str,
        client_id: str | None,
        client_secret: str | None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        """Initialize the cache.

        Args:
            token_url: Provider token endpoint
            client_id: OAuth client id
            client_secret: OAuth client secret
            client: Shared httpx client
            timeout: Token request timeout in seconds
            clock: Returns the current time in milliseconds
        """
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._transport = HttpTransport(client=client, timeout=timeout)
        self._clock = clock
        self._token: CachedToken | None = None
        self._inflight: asyncio.Task[CachedToken | None] | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret)

    @property
    def cached(self) -> CachedToken | None:
        """Current token if still valid."""
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token
        return None

    async def get_token(self) -> str | None:
        """Return a valid access token, fetching one on a miss.

        Returns:
            The token, or None when credentials are missing or the
            exchange failed
        """
        token = self.cached
        if token is not None:
            return token.value

        if not self.has_credentials:
            return None

        if self._inflight is None:
            self._inflight = asyncio.create_task(self._refresh())
            self._inflight.add_done_callback(self._clear_inflight)

        # Shielded so one cancelled waiter does not cancel the shared fetch
        fetched = await asyncio.shield(self._inflight)
        return fetched.value if fetched is not None else None

    def invalidate(self) -> None:
        """Drop the cached token; the next call fetches a new one."""
        self._token = None

    async def close(self) -> None:
        if self._inflight is not None:
            self._inflight.cancel()
            with suppress(asyncio.CancelledError):
                await self._inflight
        await self._transport.close()

    def _clear_inflight(self, task: asyncio.Task[CachedToken | None]) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _refresh(self) -> CachedToken | None:
        try:
            response = await self._transport.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                },
            )
            payload = response.json()
        except (PressroomError, ValueError) as e:
            logger.error("Token exchange failed", token_url=self._token_url, error=str(e))
            return None

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.error("Token response missing access_token", token_url=self._token_url)
            return None

        expires_in = _parse_expires_in(payload.get("expires_in"))
        if expires_in is None:
            logger.error(
                "Token response has invalid expires_in",
                token_url=self._token_url,
                expires_in=payload.get("expires_in"),
            )
            return None

        token = CachedToken(
            value=str(access_token),
            expires_at_ms=int(self._clock() + expires_in * 1000),
        )
        self._token = token
        logger.debug("Token refreshed", token_url=self._token_url, expires_in=expires_in)
        return token
