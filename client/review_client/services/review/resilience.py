"""
Resilience Layer for Remote Review Calls

Wraps any awaitable remote call with bounded retry and exponential backoff
with jitter.

Uses tenacity for the retry loop:
    - stop:   stop_after_attempt(max_attempts)
    - wait:   wait_exponential(base) + wait_random(0, jitter)
              → base * 2^(attempt-1) + uniform(0, jitter) seconds
    - retry:  only errors classified as retryable (see is_retryable)
    - reraise=True: after the last attempt the original error propagates,
      not tenacity's RetryError

Classification:
    Errors carrying retryable=False (authentication, validation, non-transient
    4xx) short-circuit immediately even if attempts remain. Transport errors
    from httpx are retried. Anything else is treated as a programming error
    and propagates on the first failure.

Usage:
    from review_client.services.review.resilience import with_retry

    session = await with_retry(lambda: api.start_session(request))
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from review_client.config import settings
from review_client.errors import ReviewClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """
    Decide whether a failed remote call may be attempted again.

    Args:
        error: Exception raised by the operation

    Returns:
        True for retryable ReviewClientErrors and httpx transport errors
    """
    if isinstance(error, ReviewClientError):
        return error.retryable
    return isinstance(error, httpx.TransportError)


def backoff_wait(base_delay: float, jitter: float):
    """
    Build the tenacity wait strategy: exponential backoff plus random jitter.

    Args:
        base_delay: Delay before the second attempt, in seconds
        jitter: Upper bound of the uniform random offset, in seconds

    Returns:
        A tenacity wait strategy
    """
    wait = wait_exponential(multiplier=base_delay, exp_base=2, min=0)
    if jitter > 0:
        wait = wait + wait_random(min=0, max=jitter)
    return wait


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    jitter: Optional[float] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Execute an async operation with bounded retry and backoff.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Total attempts including the first (default: settings)
        base_delay: Base backoff in seconds (default: settings)
        jitter: Max random offset in seconds (default: settings)
        sleep: Awaitable sleep used between attempts (default: asyncio.sleep)

    Returns:
        The operation's result

    Raises:
        The last error raised by the operation, unchanged
    """
    attempts = max_attempts if max_attempts is not None else settings.RETRY_MAX_ATTEMPTS
    delay = base_delay if base_delay is not None else settings.RETRY_BASE_DELAY_SECONDS
    spread = jitter if jitter is not None else settings.RETRY_JITTER_SECONDS

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, attempts)),
        wait=backoff_wait(delay, spread),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
    # awaited inside each attempt so lambdas returning coroutines are retried too
    async for attempt in retrying:
        with attempt:
            return await operation()
