"""Tests for the retry executor."""

import logging

import pytest

from pressroom.errors import ClassifiedError, ErrorCode, RemoteError, TransportError
from pressroom.resilience import RetryConfig, RetryPolicy, with_retry


class Flaky:
    """Operation failing with the given errors before succeeding."""

    def __init__(self, failures: list[Exception], value: str = "ok") -> None:
        self.failures = list(failures)
        self.value = value
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.value


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self) -> None:
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.base_delay_ms == 1000

    def test_no_retry(self) -> None:
        assert RetryConfig.no_retry().max_retries == 0

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PRESSROOM_MAX_RETRIES", "5")
        monkeypatch.setenv("PRESSROOM_BASE_DELAY_MS", "250")
        config = RetryConfig.from_env()
        assert config.max_retries == 5
        assert config.base_delay_ms == 250


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_calculate_delay_exponential(self) -> None:
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000))
        assert policy.calculate_delay_ms(0) == 1000
        assert policy.calculate_delay_ms(1) == 2000
        assert policy.calculate_delay_ms(2) == 4000

    def test_calculate_delay_prefers_larger_retry_after(self) -> None:
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000))
        assert policy.calculate_delay_ms(0, retry_after_seconds=30) == 30_000
        assert policy.calculate_delay_ms(6, retry_after_seconds=30) == 64_000

    def test_should_retry(self) -> None:
        policy = RetryPolicy(RetryConfig(max_retries=2))
        transient = ClassifiedError(ErrorCode.SERVER_ERROR, "x", http_status=500, retryable=True)
        permanent = ClassifiedError(ErrorCode.NOT_FOUND, "x", http_status=404)
        assert policy.should_retry(transient, 0) is True
        assert policy.should_retry(transient, 1) is True
        assert policy.should_retry(transient, 2) is False
        assert policy.should_retry(permanent, 0) is False

    @pytest.mark.asyncio
    async def test_execute_success_first_try(self, fast_retry: RetryPolicy) -> None:
        result = await fast_retry.execute(Flaky([]))
        assert result.success is True
        assert result.value == "ok"
        assert result.attempts == 1
        assert result.total_delay_ms == 0

    @pytest.mark.asyncio
    async def test_execute_reports_callback(self, fast_retry: RetryPolicy) -> None:
        seen: list[tuple[int, ErrorCode, float]] = []
        operation = Flaky([RemoteError("x", status_code=502)])

        result = await fast_retry.execute(
            operation, on_retry=lambda attempt, error, delay: seen.append((attempt, error.code, delay))
        )

        assert result.success is True
        assert seen == [(1, ErrorCode.SERVICE_UNAVAILABLE, 60_000)]


class TestWithRetry:
    """Tests for with_retry()."""

    @pytest.mark.asyncio
    async def test_non_retryable_failure_single_attempt(self, fast_retry: RetryPolicy) -> None:
        operation = Flaky([RemoteError("missing", status_code=404)])

        with pytest.raises(ClassifiedError) as exc_info:
            await with_retry(operation, policy=fast_retry)

        assert exc_info.value.code is ErrorCode.NOT_FOUND
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_two_retryable_failures_then_success(self, fast_retry: RetryPolicy, recording_sleep) -> None:
        operation = Flaky(
            [
                RemoteError("down", status_code=503),
                TransportError("slow", kind=TransportError.TIMEOUT),
            ],
            value="posts",
        )

        result = await with_retry(operation, policy=fast_retry)

        assert result == "posts"
        assert operation.calls == 3
        # max(60s, 1s) then max(30s, 2s)
        assert recording_sleep.calls == [60.0, 30.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_last_error(self, fast_retry: RetryPolicy) -> None:
        operation = Flaky([RemoteError("x", status_code=500) for _ in range(3)] + [RemoteError("y", status_code=429)])

        with pytest.raises(ClassifiedError) as exc_info:
            await with_retry(operation, policy=fast_retry)

        assert operation.calls == 4
        assert exc_info.value.code is ErrorCode.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_raw_failure_chained(self, fast_retry: RetryPolicy) -> None:
        with pytest.raises(ClassifiedError) as exc_info:
            await with_retry(Flaky([KeyError("payload")]), policy=fast_retry)

        assert exc_info.value.code is ErrorCode.UNKNOWN_ERROR
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_zero_retries(self) -> None:
        operation = Flaky([RemoteError("x", status_code=500)])
        with pytest.raises(ClassifiedError):
            await with_retry(operation, max_retries=0)
        assert operation.calls == 1

    @pytest.mark.asyncio
    async def test_retry_logged_at_warning(
        self, fast_retry: RetryPolicy, caplog: pytest.LogCaptureFixture, capture_logs
    ) -> None:
        capture_logs("pressroom.resilience.retry", logging.WARNING)
        await with_retry(Flaky([RemoteError("x", status_code=500)]), policy=fast_retry)

        records = [r for r in caplog.records if r.getMessage() == "Attempt failed, retrying"]
        assert len(records) == 1
        fields = records[0].extra_fields
        assert fields["attempt"] == 1
        assert fields["code"] == "SERVER_ERROR"
        assert fields["delay_ms"] == 30_000
