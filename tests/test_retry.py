"""
Unit tests for collaborator retry handling.
"""
import random
from unittest.mock import AsyncMock

import httpx
import pytest

from interview_engine.core.errors import MalformedResponseError
from interview_engine.core.retry import RetryPolicy, is_retryable, retry_async


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://ai.test/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class TestIsRetryable:
    """Classification of transient failures."""

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
    def test_transient_status_codes(self, status_code):
        assert is_retryable(_status_error(status_code))

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_errors_are_final(self, status_code):
        assert not is_retryable(_status_error(status_code))

    def test_network_errors(self):
        request = httpx.Request("POST", "http://ai.test")
        assert is_retryable(httpx.ConnectError("refused", request=request))
        assert is_retryable(httpx.ReadTimeout("slow", request=request))

    def test_malformed_payload(self):
        assert is_retryable(MalformedResponseError("no JSON"))

    def test_rate_limit_message(self):
        assert is_retryable(RuntimeError("Rate limit exceeded"))
        assert not is_retryable(RuntimeError("invalid api key"))


class TestRetryPolicy:
    def test_delay_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=10.0, jitter=0.0)
        assert [policy.delay_for(a) for a in range(6)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_jitter_stays_in_band(self):
        policy = RetryPolicy(base_delay=2.0, max_delay=10.0, jitter=0.25)
        rng = random.Random(7)
        for _ in range(50):
            assert 1.5 <= policy.delay_for(0, rng) <= 2.5


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        assert await retry_async(operation, RetryPolicy(), sleep=sleep) == "ok"
        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        operation = AsyncMock(side_effect=[_status_error(503), MalformedResponseError("bad"), "ok"])
        sleep = AsyncMock()

        result = await retry_async(operation, RetryPolicy(max_attempts=3, jitter=0.0), sleep=sleep)

        assert result == "ok"
        assert operation.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        operation = AsyncMock(side_effect=_status_error(500))
        sleep = AsyncMock()

        with pytest.raises(httpx.HTTPStatusError):
            await retry_async(operation, RetryPolicy(max_attempts=3), sleep=sleep)

        assert operation.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        operation = AsyncMock(side_effect=_status_error(401))
        sleep = AsyncMock()

        with pytest.raises(httpx.HTTPStatusError):
            await retry_async(operation, RetryPolicy(max_attempts=5), sleep=sleep)

        assert operation.await_count == 1
        sleep.assert_not_awaited()
