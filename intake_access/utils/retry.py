"""Retry utilities for asynchronous operations using Tenacity."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    should_retry: Callable[[BaseException], bool],
    max_attempts: int = 1,
    max_wait: float = 10.0,
    context: str = "operation",
) -> T:
    """Retry an asynchronous operation with exponential backoff using Tenacity.

    Only exceptions accepted by ``should_retry`` trigger another attempt; any
    other exception, or the last retryable one once attempts are exhausted,
    propagates unchanged to the caller.

    Args:
        operation: Zero-argument async callable to run.
        should_retry: Predicate deciding whether an exception is transient.
        max_attempts: Maximum number of attempts (1 disables retrying).
        max_wait: Upper bound for the exponential backoff delay in seconds.
        context: Label used in retry log lines.

    Returns:
        The result of the first successful attempt.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        error = outcome.exception() if outcome else None
        logging.warning(
            f"🔁 Retrying {context} attempt={retry_state.attempt_number + 1}/{max_attempts} "
            f"after {type(error).__name__}: {error}"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=0.5, max=max_wait),
        retry=retry_if_exception(should_retry),
        before_sleep=before_sleep,
        reraise=True,
    )
    return await retrying(operation)
