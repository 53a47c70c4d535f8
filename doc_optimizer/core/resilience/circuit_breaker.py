"""
Circuit breaker for the inference endpoint.

Process-wide health gate shared by every job. All counter updates and state
transitions happen under one asyncio.Lock so concurrent reports cannot lose
an increment or trigger a transition twice.

Dependencies: asyncio (stdlib), doc_optimizer.core.exceptions
System role: Fail-fast gate in front of the resilient invoker
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from doc_optimizer.core.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)


class BreakerState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True, slots=True)
class CircuitState:
    """Point-in-time view of the breaker."""

    state: BreakerState
    consecutive_failures: int
    consecutive_successes: int
    last_transition_at: datetime
    retry_after_seconds: float
    in_flight_probes: int

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "consecutive_successes": self.consecutive_successes,
            "last_transition_at": self.last_transition_at.isoformat(),
            "retry_after_seconds": round(self.retry_after_seconds, 3),
            "in_flight_probes": self.in_flight_probes,
        }


class CircuitBreaker:
    """
    Three-state breaker.

    closed: calls pass; consecutive failures reaching `failure_threshold`
        open the circuit. A success resets the failure count.
    open: calls are rejected until `cooldown_seconds` have elapsed, then the
        next caller moves the breaker to half-open.
    half_open: up to `half_open_max_calls` probes run at once.
        `success_threshold` consecutive successes close the circuit; any
        failure reopens it and restarts the cooldown.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        cooldown_seconds: float = 60.0,
        half_open_max_calls: int = 1,
        clock: Callable[[], float] = time.monotonic,
        name: str = "inference",
    ) -> None:
        if failure_threshold < 1 or success_threshold < 1 or half_open_max_calls < 1:
            raise ValueError("breaker thresholds must be at least 1")
        self._failure_threshold = failure_threshold
        self._success_threshold = success_threshold
        self._cooldown = cooldown_seconds
        self._half_open_max_calls = half_open_max_calls
        self._clock = clock
        self.name = name

        self._lock = asyncio.Lock()
        self._state = BreakerState.CLOSED
        self._failures = 0
        self._successes = 0
        self._probes = 0
        self._opened_at = 0.0
        self._last_transition_at = datetime.now(timezone.utc)

    @property
    def state(self) -> BreakerState:
        return self._state

    def snapshot(self) -> CircuitState:
        return CircuitState(
            state=self._state,
            consecutive_failures=self._failures,
            consecutive_successes=self._successes,
            last_transition_at=self._last_transition_at,
            retry_after_seconds=self._retry_after() if self._state is BreakerState.OPEN else 0.0,
            in_flight_probes=self._probes,
        )

    async def acquire(self) -> None:
        """
        Admit one call or fail fast.

        Raises:
            CircuitOpenError: Circuit open and cooling down, or half-open with
                every probe slot taken
        """
        async with self._lock:
            if self._state is BreakerState.OPEN:
                remaining = self._retry_after()
                if remaining > 0:
                    raise CircuitOpenError(retry_after=remaining)
                self._transition(BreakerState.HALF_OPEN)

            if self._state is BreakerState.HALF_OPEN:
                if self._probes >= self._half_open_max_calls:
                    raise CircuitOpenError(retry_after=0.0)
                self._probes += 1

    async def record_success(self) -> None:
        async with self._lock:
            if self._state is BreakerState.HALF_OPEN:
                self._release_probe()
                self._successes += 1
                if self._successes >= self._success_threshold:
                    self._transition(BreakerState.CLOSED)
            else:
                self._failures = 0

    async def record_failure(self) -> None:
        async with self._lock:
            if self._state is BreakerState.HALF_OPEN:
                self._release_probe()
                self._failures += 1
                self._transition(BreakerState.OPEN)
                return

            self._failures += 1
            if self._state is BreakerState.CLOSED and self._failures >= self._failure_threshold:
                self._transition(BreakerState.OPEN)

    async def release(self) -> None:
        """Give back an admitted slot without reporting an outcome (cancellation)."""
        async with self._lock:
            if self._state is BreakerState.HALF_OPEN:
                self._release_probe()

    async def reset(self) -> None:
        async with self._lock:
            self._transition(BreakerState.CLOSED)

    def _release_probe(self) -> None:
        self._probes = max(self._probes - 1, 0)

    def _retry_after(self) -> float:
        return self._cooldown - (self._clock() - self._opened_at)

    def _transition(self, new_state: BreakerState) -> None:
        previous = self._state
        self._state = new_state
        self._last_transition_at = datetime.now(timezone.utc)

        if new_state is BreakerState.OPEN:
            self._opened_at = self._clock()
            self._successes = 0
            self._probes = 0
        elif new_state is BreakerState.HALF_OPEN:
            self._successes = 0
            self._probes = 0
        else:
            self._failures = 0
            self._successes = 0
            self._probes = 0

        log = logger.warning if new_state is BreakerState.OPEN else logger.info
        log(
            f"Circuit '{self.name}' {previous.value} -> {new_state.value}",
            extra={
                "breaker": self.name,
                "from_state": previous.value,
                "to_state": new_state.value,
                "consecutive_failures": self._failures,
            },
        )
