"""Tests for the three-state circuit breaker.

Uses a manually advanced clock; no real time passes.
"""

import asyncio

import pytest

from doc_optimizer.core.exceptions import CircuitOpenError, ErrorCode
from doc_optimizer.core.resilience import BreakerState, CircuitBreaker


def _breaker(clock, **overrides) -> CircuitBreaker:
    options = {"failure_threshold": 3, "success_threshold": 2, "cooldown_seconds": 60, "clock": clock}
    options.update(overrides)
    return CircuitBreaker(**options)


async def _fail(breaker: CircuitBreaker, times: int) -> None:
    for _ in range(times):
        await breaker.acquire()
        await breaker.record_failure()


class TestClosedState:
    """Failure counting while closed."""

    @pytest.mark.asyncio
    async def test_opens_at_failure_threshold(self, fake_clock) -> None:
        """Should open after threshold consecutive failures."""
        breaker = _breaker(fake_clock)

        await _fail(breaker, 2)
        assert breaker.state is BreakerState.CLOSED

        await _fail(breaker, 1)
        assert breaker.state is BreakerState.OPEN
        assert breaker.snapshot().consecutive_failures == 3

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, fake_clock) -> None:
        """Should only count consecutive failures."""
        breaker = _breaker(fake_clock)

        await _fail(breaker, 2)
        await breaker.acquire()
        await breaker.record_success()
        await _fail(breaker, 2)

        assert breaker.state is BreakerState.CLOSED
        assert breaker.snapshot().consecutive_failures == 2


class TestOpenState:
    """Fail-fast while cooling down."""

    @pytest.mark.asyncio
    async def test_rejects_until_cooldown(self, fake_clock) -> None:
        """Should raise CircuitOpenError with the remaining cooldown."""
        breaker = _breaker(fake_clock)
        await _fail(breaker, 3)

        fake_clock.advance(20)
        with pytest.raises(CircuitOpenError) as exc_info:
            await breaker.acquire()

        assert exc_info.value.code is ErrorCode.CIRCUIT_OPEN
        assert exc_info.value.details["retry_after_seconds"] == pytest.approx(40.0)
        assert breaker.state is BreakerState.OPEN

    @pytest.mark.asyncio
    async def test_moves_to_half_open_after_cooldown(self, fake_clock) -> None:
        """Should admit a probe once the cooldown has elapsed."""
        breaker = _breaker(fake_clock)
        await _fail(breaker, 3)

        fake_clock.advance(60)
        await breaker.acquire()

        assert breaker.state is BreakerState.HALF_OPEN
        assert breaker.snapshot().in_flight_probes == 1


class TestHalfOpenState:
    """Probe admission and resolution."""

    async def _half_open(self, clock) -> CircuitBreaker:
        breaker = _breaker(clock)
        await _fail(breaker, 3)
        clock.advance(61)
        return breaker

    @pytest.mark.asyncio
    async def test_successes_close_circuit(self, fake_clock) -> None:
        """Should close after success_threshold consecutive probe successes."""
        breaker = await self._half_open(fake_clock)

        await breaker.acquire()
        await breaker.record_success()
        assert breaker.state is BreakerState.HALF_OPEN

        await breaker.acquire()
        await breaker.record_success()
        assert breaker.state is BreakerState.CLOSED
        assert breaker.snapshot().consecutive_failures == 0

    @pytest.mark.asyncio
    async def test_failure_reopens_circuit(self, fake_clock) -> None:
        """Should reopen and restart the cooldown on a probe failure."""
        breaker = await self._half_open(fake_clock)

        await breaker.acquire()
        await breaker.record_failure()

        assert breaker.state is BreakerState.OPEN
        with pytest.raises(CircuitOpenError):
            await breaker.acquire()

    @pytest.mark.asyncio
    async def test_limits_concurrent_probes(self, fake_clock) -> None:
        """Should admit at most half_open_max_calls probes at once."""
        breaker = await self._half_open(fake_clock)

        await breaker.acquire()
        with pytest.raises(CircuitOpenError):
            await breaker.acquire()

        await breaker.release()
        await breaker.acquire()
        assert breaker.snapshot().in_flight_probes == 1


class TestBreakerOperations:
    """Reset, snapshots, and concurrent reporting."""

    @pytest.mark.asyncio
    async def test_reset_closes_circuit(self, fake_clock) -> None:
        """Should close an open circuit on operator reset."""
        breaker = _breaker(fake_clock)
        await _fail(breaker, 3)

        await breaker.reset()

        assert breaker.state is BreakerState.CLOSED
        await breaker.acquire()

    @pytest.mark.asyncio
    async def test_concurrent_failures_counted_once_each(self, fake_clock) -> None:
        """Should not lose increments under concurrent reports."""
        breaker = _breaker(fake_clock, failure_threshold=100)

        await asyncio.gather(*(breaker.record_failure() for _ in range(50)))

        assert breaker.snapshot().consecutive_failures == 50

    def test_snapshot_serializes(self, fake_clock) -> None:
        """Should expose a JSON-friendly snapshot."""
        snapshot = _breaker(fake_clock).snapshot().to_dict()

        assert snapshot["state"] == "closed"
        assert snapshot["retry_after_seconds"] == 0.0
        assert "last_transition_at" in snapshot

    def test_invalid_thresholds_rejected(self, fake_clock) -> None:
        """Should reject non-positive thresholds."""
        with pytest.raises(ValueError):
            _breaker(fake_clock, failure_threshold=0)
