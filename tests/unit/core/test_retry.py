"""Unit tests for retry and backoff helpers."""

from __future__ import annotations

import pytest

from locsync_core.ports.api import ApiError, ApiErrorCode, is_retryable_api_error
from locsync_core.retry import backoff_delay, run_with_retries
from locsync_schemas.config import RetryConfig
from tests.helpers.fakes import FakeClock, api_error


@pytest.mark.unit
def test_backoff_doubles_and_caps() -> None:
    """Each retry waits twice as long as the previous one, up to the cap."""
    policy = RetryConfig(max_retries=5, backoff_s=1.0, max_backoff_s=5.0)

    delays = [backoff_delay(attempt, policy) for attempt in range(1, 6)]

    assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]


@pytest.mark.unit
def test_backoff_rejects_attempt_zero() -> None:
    """Attempts are counted from one."""
    with pytest.raises(ValueError):
        backoff_delay(0, RetryConfig())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_with_retries_recovers_from_transient_errors(
    clock: FakeClock,
) -> None:
    """Retryable errors are retried with backoff until the call succeeds."""
    failures = [
        api_error(ApiErrorCode.SERVER_ERROR),
        api_error(ApiErrorCode.RATE_LIMITED),
    ]
    retries: list[int] = []

    async def _operation() -> str:
        if failures:
            raise failures.pop(0)
        return "ok"

    async def _on_retry(attempt: int, delay: float, error: Exception) -> None:
        retries.append(attempt)

    result = await run_with_retries(
        _operation,
        policy=RetryConfig(max_retries=3, backoff_s=0.5),
        is_retryable=is_retryable_api_error,
        sleep=clock.sleep,
        on_retry=_on_retry,
    )

    assert result == "ok"
    assert retries == [1, 2]
    assert clock.sleeps == [0.5, 1.0]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_with_retries_raises_non_retryable_immediately(
    clock: FakeClock,
) -> None:
    """Errors outside the retryable set are raised without sleeping."""
    calls = 0

    async def _operation() -> None:
        nonlocal calls
        calls += 1
        raise api_error(ApiErrorCode.UNAUTHORIZED)

    with pytest.raises(ApiError, match="unauthorized"):
        await run_with_retries(
            _operation,
            policy=RetryConfig(max_retries=3),
            is_retryable=is_retryable_api_error,
            sleep=clock.sleep,
        )
    assert calls == 1
    assert clock.sleeps == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_run_with_retries_gives_up_after_cap(clock: FakeClock) -> None:
    """The last error is raised once retries are exhausted."""
    calls = 0

    async def _operation() -> None:
        nonlocal calls
        calls += 1
        raise api_error(ApiErrorCode.TRANSPORT_ERROR)

    with pytest.raises(ApiError, match="transport_error"):
        await run_with_retries(
            _operation,
            policy=RetryConfig(max_retries=2, backoff_s=1.0),
            is_retryable=is_retryable_api_error,
            sleep=clock.sleep,
        )
    assert calls == 3
    assert clock.sleeps == [1.0, 2.0]
