"""Circuit breaker that stops hammering a failing synthesis service."""

import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from ..tts.errors import ErrorCode, TTSError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitOpenError(TTSError):
    """Raised instead of calling a service whose circuit is open."""

    default_code = ErrorCode.SERVICE_UNAVAILABLE


def counts_against_service(error: BaseException) -> bool:
    """Bad input says nothing about service health; everything else does."""
    if isinstance(error, TTSError):
        return error.code is not ErrorCode.VALIDATION_ERROR
    return isinstance(error, Exception)


class CircuitBreaker:
    """Closed/open/half-open breaker around an async call.

    After failure_threshold consecutive counted failures the circuit opens
    and calls fail immediately with CircuitOpenError. Once recovery_timeout
    seconds have passed a single trial call is let through; success closes
    the circuit again, failure re-opens it.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError(
                f"failure_threshold must be at least 1, got {failure_threshold}"
            )
        if recovery_timeout < 0:
            raise ValueError(
                f"recovery_timeout cannot be negative, got {recovery_timeout}"
            )
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._trial_in_flight = False

    @property
    def current_state(self) -> CircuitState:
        return self._state

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Await operation through the breaker.

        Raises:
            CircuitOpenError: If the circuit is open, or half-open with its
                trial call still running
        """
        if self._state is CircuitState.OPEN:
            if self._clock() - self._opened_at >= self.recovery_timeout:
                logger.info("Circuit half-open, allowing a trial call")
                self._state = CircuitState.HALF_OPEN
            else:
                raise CircuitOpenError(
                    "Speech service is temporarily unavailable (circuit open)"
                )

        is_trial = False
        if self._state is CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError(
                    "Speech service is temporarily unavailable "
                    "(circuit half-open, trial call in progress)"
                )
            self._trial_in_flight = True
            is_trial = True

        try:
            result = await operation()
        except Exception as e:
            if counts_against_service(e):
                self._on_failure()
            raise
        finally:
            # Cancellation and uncounted errors leave the circuit half-open
            if is_trial:
                self._trial_in_flight = False
        self._on_success()
        return result

    def state(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "failures": self._failures,
            "opened_at": self._opened_at,
        }

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._trial_in_flight = False

    def _on_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            logger.info("Circuit closed after successful call")
        self._failures = 0
        self._state = CircuitState.CLOSED

    def _on_failure(self) -> None:
        self._failures += 1
        if (
            self._state is CircuitState.HALF_OPEN
            or self._failures >= self.failure_threshold
        ):
            if self._state is not CircuitState.OPEN:
                logger.warning(
                    f"Circuit opened after {self._failures} consecutive failures"
                )
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
