"""
Unit tests for backoff, error classification and the retry executor
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from core.exceptions import (
    AuthenticationError,
    BadRequestError,
    ChannelNotFoundError,
    DataFormatError,
    NetworkError,
    RateLimitError,
    RetryExhaustedError,
    ServerError,
    SyncCancelledError,
)
from ingestion.retry import ErrorKind, RetryConfig, RetryExecutor, classify_error, classify_status


class TestBackoffPolicy:
    """Test RetryConfig.delay"""

    def test_first_attempt_uses_initial_delay(self):
        config = RetryConfig(initial_delay=1.5, max_delay=30, multiplier=2)
        assert config.delay(1) == 1.5

    def test_exponential_growth_until_capped(self):
        config = RetryConfig(max_attempts=10, initial_delay=1, max_delay=30, multiplier=2)

        delays = [config.delay(n) for n in range(1, 9)]

        assert delays == [1, 2, 4, 8, 16, 30, 30, 30]

    def test_never_exceeds_max_and_non_decreasing(self):
        config = RetryConfig(initial_delay=0.5, max_delay=7, multiplier=3)

        delays = [config.delay(n) for n in range(1, 50)]

        assert all(d <= 7 for d in delays)
        assert delays == sorted(delays)

    @pytest.mark.parametrize("attempt", [0, -1, -100])
    def test_non_positive_attempt_treated_as_first(self, attempt):
        config = RetryConfig(initial_delay=2, max_delay=30)
        assert config.delay(attempt) == config.delay(1) == 2

    def test_rejects_invalid_config(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)
        with pytest.raises(ValueError):
            RetryConfig(multiplier=0.5)


class TestErrorClassifier:
    """Test classify_error / classify_status"""

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_rate_limit_and_server_errors_are_transient(self, status):
        assert classify_status(status) == ErrorKind.TRANSIENT
        assert classify_error(BadRequestError("synthetic", status_code=status)) == ErrorKind.TRANSIENT

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409])
    def test_other_client_errors_are_permanent(self, status):
        assert classify_status(status) == ErrorKind.PERMANENT
        assert classify_error(ServerError("synthetic", status_code=status)) == ErrorKind.PERMANENT

    def test_status_code_decides_over_exception_type(self):
        assert classify_error(RateLimitError("slow down")) == ErrorKind.TRANSIENT
        assert classify_error(AuthenticationError("denied", status_code=403)) == ErrorKind.PERMANENT
        assert classify_error(ChannelNotFoundError("missing")) == ErrorKind.PERMANENT

    def test_errors_without_status(self):
        assert classify_error(NetworkError("connection reset")) == ErrorKind.TRANSIENT
        assert classify_error(DataFormatError("bad payload")) == ErrorKind.PERMANENT
        assert classify_error(ValueError("undecodable")) == ErrorKind.UNKNOWN
        assert classify_error(ConnectionError("blip")) == ErrorKind.UNKNOWN


class TestRetryExecutor:
    """Test attempt counting, short-circuits and cancellation"""

    @pytest.mark.asyncio
    async def test_success_after_two_failures(self, observer):
        executor = RetryExecutor(RetryConfig(max_attempts=5, initial_delay=0, max_delay=0), observer)
        operation = AsyncMock(side_effect=[
            ServerError("boom", status_code=503),
            RateLimitError("slow down"),
            "ok",
        ])

        result = await executor.execute(operation, operation_name="videos.list")

        assert result == "ok"
        assert operation.call_count == 3
        assert [e["labels"]["attempt"] for e in observer.events] == [1, 2, 3]
        assert [e["labels"]["error_kind"] for e in observer.events] == ["transient", "transient", None]

    @pytest.mark.asyncio
    async def test_exhaustion_after_max_attempts(self, observer):
        executor = RetryExecutor(RetryConfig(max_attempts=3, initial_delay=0, max_delay=0), observer)
        last = ServerError("still down", status_code=500)
        operation = AsyncMock(side_effect=[ServerError("down", status_code=500)] * 2 + [last])

        with pytest.raises(RetryExhaustedError) as exc_info:
            await executor.execute(operation, operation_name="playlistItems.list")

        assert operation.call_count == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert exc_info.value.__cause__ is last

    @pytest.mark.asyncio
    async def test_unknown_errors_are_retried(self, observer):
        executor = RetryExecutor(RetryConfig(max_attempts=4, initial_delay=0, max_delay=0), observer)
        operation = AsyncMock(side_effect=ValueError("not json"))

        with pytest.raises(RetryExhaustedError):
            await executor.execute(operation)

        assert operation.call_count == 4
        assert {e["labels"]["error_kind"] for e in observer.events} == {"unknown"}

    @pytest.mark.asyncio
    async def test_permanent_error_is_not_retried(self, observer):
        executor = RetryExecutor(RetryConfig(max_attempts=5, initial_delay=0, max_delay=0), observer)
        error = AuthenticationError("quota key rejected", status_code=403)
        operation = AsyncMock(side_effect=error)

        with pytest.raises(AuthenticationError) as exc_info:
            await executor.execute(operation)

        assert exc_info.value is error
        assert operation.call_count == 1
        assert observer.events[0]["labels"]["error_kind"] == "permanent"

    @pytest.mark.asyncio
    async def test_attempt_events_carry_chosen_delay(self, observer):
        config = RetryConfig(max_attempts=3, initial_delay=0.01, max_delay=0.02, multiplier=2)
        executor = RetryExecutor(config, observer)
        operation = AsyncMock(side_effect=NetworkError("reset"))

        with pytest.raises(RetryExhaustedError):
            await executor.execute(operation, labels={"channel_id": "abc"})

        assert [e["labels"]["delay"] for e in observer.events] == [0.01, 0.02, 0.0]
        assert all(e["labels"]["channel_id"] == "abc" for e in observer.events)

    @pytest.mark.asyncio
    async def test_cancel_before_first_attempt(self, observer):
        cancel_event = asyncio.Event()
        cancel_event.set()
        executor = RetryExecutor(RetryConfig(), observer, cancel_event)
        operation = AsyncMock(return_value="never")

        with pytest.raises(SyncCancelledError):
            await executor.execute(operation)

        operation.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_interrupts_backoff_sleep(self, observer):
        cancel_event = asyncio.Event()
        executor = RetryExecutor(RetryConfig(max_attempts=5, initial_delay=60, max_delay=60), observer, cancel_event)

        async def operation():
            cancel_event.set()
            raise ServerError("down", status_code=503)

        counted = AsyncMock(side_effect=operation)

        with pytest.raises(SyncCancelledError) as exc_info:
            await asyncio.wait_for(executor.execute(counted), timeout=5)

        assert not isinstance(exc_info.value, RetryExhaustedError)
        assert counted.call_count == 1
