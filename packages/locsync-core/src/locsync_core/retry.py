"""Bounded retry with a pure exponential backoff schedule."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from locsync_schemas.config import RetryConfig

T = TypeVar("T")

type SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, policy: RetryConfig) -> float:
    """Return the delay before a retry attempt.

    ``attempt`` counts retries from 1. The first retry waits ``backoff_s``
    and every later retry waits twice as long as the previous one, capped at
    ``max_backoff_s``.

    Returns:
        float: Delay in seconds.

    Raises:
        ValueError: If attempt is lower than 1.
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    delay = policy.backoff_s * (2 ** (attempt - 1))
    return min(delay, policy.max_backoff_s)


async def run_with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryConfig,
    is_retryable: Callable[[Exception], bool],
    sleep: SleepFn = asyncio.sleep,
    on_retry: Callable[[int, float, Exception], Awaitable[None]] | None = None,
) -> T:
    """Run an async operation, retrying retryable failures with backoff.

    Args:
        operation: Zero-argument coroutine factory.
        policy: Retry limits and backoff schedule.
        is_retryable: Predicate deciding whether an error may be retried.
        sleep: Suspension primitive used between attempts.
        on_retry: Optional hook called with (attempt, delay, error) before
            each retry.

    Returns:
        T: Result of the first successful attempt.

    Raises:
        Exception: The last error once retries are exhausted or the error is
            not retryable.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= policy.max_retries or not is_retryable(exc):
                raise
            attempt += 1
            delay = backoff_delay(attempt, policy)
            if on_retry is not None:
                await on_retry(attempt, delay, exc)
            await sleep(delay)
