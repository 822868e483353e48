"""Root pytest fixtures for pressroom tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

import pytest

from pressroom.resilience import RetryConfig, RetryPolicy
from pressroom.telemetry import get_logger

CREDENTIAL_ENV_VARS = (
    "UNSPLASH_ACCESS_KEY",
    "PEXELS_API_KEY",
    "PIXABAY_API_KEY",
    "OPENVERSE_CLIENT_ID",
    "OPENVERSE_CLIENT_SECRET",
)


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def _isolate_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of the tests."""
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_retry(recording_sleep: RecordingSleep) -> RetryPolicy:
    """Default retry policy whose backoff sleeps return immediately."""
    return RetryPolicy(RetryConfig(), sleep=recording_sleep)


@pytest.fixture
def no_retry() -> RetryPolicy:
    return RetryPolicy(RetryConfig.no_retry())


async def public_resolver(host: str) -> list[str]:
    """DNS stand-in mapping every host to a public address."""
    return ["93.184.216.34"]


@pytest.fixture
def resolver():
    return public_resolver


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> Iterator[Callable[[str, int], None]]:
    """Route a pressroom logger into caplog.

    pressroom loggers do not propagate to the root logger, so caplog's
    handler is attached to the named logger directly.
    """
    attached: list[logging.Logger] = []

    def attach(name: str, level: int = logging.DEBUG) -> None:
        get_logger(name)
        logger = logging.getLogger(name)
        logger.addHandler(caplog.handler)
        caplog.set_level(level, logger=name)
        attached.append(logger)

    yield attach
    for logger in attached:
        logger.removeHandler(caplog.handler)
