"""
Bounded Retry for HTTP Requests

A RetryPolicy describes how often and how patiently to retry; the generic
request_with_retry() applies it to any coroutine that returns an
httpx.Response. Rate-limited responses (HTTP 429) and transport exceptions are
retried. Any other response is returned to the caller as-is.

Built on tenacity's AsyncRetrying so the stop/wait/retry conditions compose the
same way as the rest of the codebase's retry decorators.

Usage:
    from book_scanner.pipelines.utils.retry import RetryPolicy, linear_backoff, request_with_retry

    policy = RetryPolicy(max_attempts=3, backoff=linear_backoff(1.0))
    response = await request_with_retry(lambda: client.get(url), policy)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)

from book_scanner.exceptions import RateLimited

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS_CODE = 429

BackoffFn = Callable[[int], float]


def fixed_backoff(seconds: float) -> BackoffFn:
    """Wait the same number of seconds after every failed attempt."""
    return lambda attempt: seconds


def linear_backoff(seconds: float) -> BackoffFn:
    """Wait `seconds * attempt` after the given (1-based) failed attempt."""
    return lambda attempt: seconds * attempt


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry policy.

    Attributes:
        max_attempts: Total attempts including the first one
        backoff: Maps the 1-based number of the failed attempt to a delay in seconds
    """

    max_attempts: int = 3
    backoff: BackoffFn = field(default_factory=lambda: linear_backoff(1.0))

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("RetryPolicy.max_attempts must be at least 1")


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == RATE_LIMIT_STATUS_CODE


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    reason = (
        f"{type(outcome.exception()).__name__}"
        if outcome is not None and outcome.failed
        else f"HTTP {RATE_LIMIT_STATUS_CODE}"
    )
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        f"Attempt {retry_state.attempt_number} failed ({reason}), "
        f"retrying in {delay:.1f}s"
    )


async def request_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """
    Send a request, retrying on HTTP 429 and transport errors per the policy.

    Args:
        send: Zero-argument coroutine factory performing one request
        policy: Attempt bound and backoff schedule
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        The first response that is not rate-limited

    Raises:
        RateLimited: If every attempt was answered with HTTP 429
        httpx.TransportError: If the last attempt failed at the transport level
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda retry_state: policy.backoff(retry_state.attempt_number),
        retry=(
            retry_if_result(_is_rate_limited)
            | retry_if_exception_type(httpx.TransportError)
        ),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )

    try:
        return await retrying(send)
    except RetryError as e:
        # reraise=True only re-raises exceptions; a 429 result lands here
        raise RateLimited(
            f"Rate limited after {policy.max_attempts} attempts",
            details={"attempts": policy.max_attempts},
        ) from e
