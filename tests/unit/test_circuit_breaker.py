"""Unit tests for CircuitBreaker state transitions."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from quizvoice.preload.circuit import (
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
    counts_against_service,
)
from quizvoice.tts.errors import ErrorCode, TTSAPIError, TTSValidationError


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


async def trip(breaker: CircuitBreaker, times: int) -> None:
    failing = AsyncMock(side_effect=TTSAPIError("down", status_code=503))
    for _ in range(times):
        with pytest.raises(TTSAPIError):
            await breaker.call(failing)


class TestCircuitBreaker:
    """Test closed -> open -> half-open -> closed cycle."""

    def test_invalid_settings_rejected(self) -> None:
        with pytest.raises(ValueError, match="failure_threshold"):
            CircuitBreaker(failure_threshold=0)
        with pytest.raises(ValueError, match="recovery_timeout"):
            CircuitBreaker(recovery_timeout=-1)

    @pytest.mark.asyncio
    async def test_passes_results_through_when_closed(self) -> None:
        breaker = CircuitBreaker()
        assert await breaker.call(AsyncMock(return_value="audio")) == "audio"
        assert breaker.current_state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self) -> None:
        breaker = CircuitBreaker(failure_threshold=3)

        await trip(breaker, 2)
        assert breaker.current_state is CircuitState.CLOSED

        await trip(breaker, 1)
        assert breaker.current_state is CircuitState.OPEN
        assert breaker.state()["failures"] == 3

    @pytest.mark.asyncio
    async def test_open_circuit_fails_fast(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1)
        await trip(breaker, 1)
        operation = AsyncMock(return_value="audio")

        with pytest.raises(CircuitOpenError, match="circuit open") as exc_info:
            await breaker.call(operation)

        operation.assert_not_awaited()
        assert exc_info.value.code is ErrorCode.SERVICE_UNAVAILABLE
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_half_open_success_closes(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=30.0, clock=clock)
        await trip(breaker, 1)

        clock.now += 30.0
        assert await breaker.call(AsyncMock(return_value="audio")) == "audio"

        assert breaker.current_state is CircuitState.CLOSED
        assert breaker.state()["failures"] == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=30.0, clock=clock)
        await trip(breaker, 3)

        clock.now += 31.0
        await trip(breaker, 1)

        assert breaker.current_state is CircuitState.OPEN
        assert breaker.state()["opened_at"] == clock.now

    @pytest.mark.asyncio
    async def test_half_open_lets_one_concurrent_call_through(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=30.0, clock=clock)
        await trip(breaker, 1)
        clock.now += 30.0

        service_calls = 0
        release = asyncio.Event()

        async def slow() -> str:
            nonlocal service_calls
            service_calls += 1
            await release.wait()
            return "audio"

        tasks = [asyncio.create_task(breaker.call(slow)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert service_calls == 1
        assert results.count("audio") == 1
        assert sum(isinstance(r, CircuitOpenError) for r in results) == 4
        assert breaker.current_state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_cancelled_trial_allows_another(self) -> None:
        clock = FakeClock()
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=30.0, clock=clock)
        await trip(breaker, 1)
        clock.now += 30.0

        trial = asyncio.create_task(breaker.call(asyncio.Event().wait))
        await asyncio.sleep(0)
        with pytest.raises(CircuitOpenError, match="trial call in progress"):
            await breaker.call(AsyncMock(return_value="audio"))

        trial.cancel()
        with pytest.raises(asyncio.CancelledError):
            await trial

        assert breaker.current_state is CircuitState.HALF_OPEN
        assert await breaker.call(AsyncMock(return_value="audio")) == "audio"
        assert breaker.current_state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self) -> None:
        breaker = CircuitBreaker(failure_threshold=2)
        await trip(breaker, 1)
        await breaker.call(AsyncMock(return_value=None))
        await trip(breaker, 1)

        assert breaker.current_state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_validation_errors_do_not_count(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1)
        operation = AsyncMock(side_effect=TTSValidationError("Text is too long"))

        for _ in range(3):
            with pytest.raises(TTSValidationError):
                await breaker.call(operation)

        assert breaker.current_state is CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_reset(self) -> None:
        breaker = CircuitBreaker(failure_threshold=1)
        await trip(breaker, 1)

        breaker.reset()

        assert breaker.state() == {"state": "closed", "failures": 0, "opened_at": 0.0}

    def test_counts_against_service(self) -> None:
        assert counts_against_service(TTSAPIError("x", status_code=500))
        assert counts_against_service(RuntimeError("x"))
        assert not counts_against_service(TTSValidationError("x"))
