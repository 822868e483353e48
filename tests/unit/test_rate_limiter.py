"""Tests for the sliding-window admission limiter."""

import threading

import pytest

from pressroom.errors import ClassifiedError, ErrorCode
from pressroom.resilience import RateLimiterConfig, SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, now_ms: float = 1_000_000.0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(RateLimiterConfig(max_requests=3, window_ms=1000), clock=clock)


class TestRateLimiterConfig:
    """Tests for RateLimiterConfig."""

    def test_defaults(self) -> None:
        config = RateLimiterConfig()
        assert config.max_requests == 100
        assert config.window_ms == 60_000

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRESSROOM_MAX_REQUESTS", "7")
        monkeypatch.setenv("PRESSROOM_WINDOW_MS", "5000")
        config = RateLimiterConfig.from_env()
        assert (config.max_requests, config.window_ms) == (7, 5000)


class TestSlidingWindowRateLimiter:
    """Tests for SlidingWindowRateLimiter."""

    def test_admits_up_to_limit_then_rejects(self, limiter: SlidingWindowRateLimiter) -> None:
        results = [limiter.is_allowed("wordpress-api") for _ in range(4)]
        assert results == [True, True, True, False]

    def test_admits_again_after_window(self, limiter: SlidingWindowRateLimiter, clock: FakeClock) -> None:
        for _ in range(3):
            limiter.is_allowed("k")
        assert limiter.is_allowed("k") is False

        clock.advance(1000)
        assert limiter.is_allowed("k") is True

    def test_rejected_requests_not_recorded(self, limiter: SlidingWindowRateLimiter) -> None:
        for _ in range(10):
            limiter.is_allowed("k")
        assert limiter.count("k") == 3

    def test_keys_are_independent(self, limiter: SlidingWindowRateLimiter) -> None:
        for _ in range(3):
            limiter.is_allowed("pexels")
        assert limiter.is_allowed("pexels") is False
        assert limiter.is_allowed("pixabay") is True

    def test_window_slides(self, limiter: SlidingWindowRateLimiter, clock: FakeClock) -> None:
        limiter.is_allowed("k")
        clock.advance(600)
        limiter.is_allowed("k")
        limiter.is_allowed("k")
        clock.advance(500)
        # First request left the window, the other two are still inside
        assert limiter.is_allowed("k") is True
        assert limiter.is_allowed("k") is False

    def test_retry_after_seconds(self, limiter: SlidingWindowRateLimiter, clock: FakeClock) -> None:
        assert limiter.get_retry_after_seconds("k") == 0
        for _ in range(3):
            limiter.is_allowed("k")
        clock.advance(250)
        assert limiter.get_retry_after_seconds("k") == 1

    def test_retry_after_never_negative(self, limiter: SlidingWindowRateLimiter, clock: FakeClock) -> None:
        limiter.is_allowed("k")
        clock.advance(5000)
        assert limiter.get_retry_after_seconds("k") == 0

    def test_ensure_allowed_raises_rate_limited(self, limiter: SlidingWindowRateLimiter) -> None:
        for _ in range(3):
            limiter.ensure_allowed("k")

        with pytest.raises(ClassifiedError) as exc_info:
            limiter.ensure_allowed("k")

        error = exc_info.value
        assert error.code is ErrorCode.RATE_LIMITED
        assert error.http_status == 429
        assert error.retryable is True
        assert error.retry_after_seconds == 1

    def test_reset(self, limiter: SlidingWindowRateLimiter) -> None:
        for _ in range(3):
            limiter.is_allowed("a")
            limiter.is_allowed("b")
        limiter.reset("a")
        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("b") is False
        limiter.reset()
        assert limiter.is_allowed("b") is True

    def test_concurrent_callers_never_exceed_limit(self, clock: FakeClock) -> None:
        limiter = SlidingWindowRateLimiter(RateLimiterConfig(max_requests=50, window_ms=1000), clock=clock)
        admitted: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(20):
                allowed = limiter.is_allowed("shared")
                with lock:
                    admitted.append(allowed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(admitted) == 50
