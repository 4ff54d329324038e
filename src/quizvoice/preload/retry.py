"""Retry-with-backoff wrapper around a single synthesis call."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ..tts.errors import TTSError, is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters for one call.

    Delay before attempt n+1 is min(base_delay_ms * backoff_factor ** (n - 1),
    max_delay_ms) plus uniform jitter in [0, jitter_ms].

    Args:
        max_attempts: Total attempts including the first (>= 1)
        base_delay_ms: Delay after the first failed attempt
        max_delay_ms: Upper bound for the exponential part of the delay
        backoff_factor: Growth factor between consecutive delays (>= 1.0)
        jitter_ms: Upper bound of the random extra delay
    """

    max_attempts: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_factor: float = 2.0
    jitter_ms: int = 0

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0 or self.jitter_ms < 0:
            raise ValueError("delays cannot be negative")
        if self.backoff_factor < 1.0:
            raise ValueError("backoff_factor must be at least 1.0")

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the given failed attempt, without jitter."""
        delay_ms = min(
            self.base_delay_ms * self.backoff_factor ** (attempt - 1),
            self.max_delay_ms,
        )
        return delay_ms / 1000


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    retry_condition: Callable[[BaseException], bool] = is_transient,
    on_retry: Callable[[int, TTSError], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await operation, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine function performing one attempt
        policy: Backoff parameters (defaults to RetryPolicy())
        retry_condition: Decides whether a failure is worth another attempt
        on_retry: Called with (attempt, error) before each backoff sleep
        sleep: Awaitable sleep used between attempts

    Returns:
        The first successful result

    Raises:
        Exception: The last error, unchanged, once it is permanent or the
            attempts are exhausted
    """
    policy = policy or RetryPolicy()

    def _before_sleep(state: RetryCallState) -> None:
        error = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            f"Attempt {state.attempt_number}/{policy.max_attempts} failed "
            f"({error!r}), retrying in {delay:.2f}s"
        )
        if on_retry is not None and isinstance(error, TTSError):
            on_retry(state.attempt_number, error)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(
            multiplier=policy.base_delay_ms / 1000,
            exp_base=policy.backoff_factor,
            max=policy.max_delay_ms / 1000,
        )
        + wait_random(0, policy.jitter_ms / 1000),
        retry=retry_if_exception(retry_condition),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            result = await operation()
    return result
