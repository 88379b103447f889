"""Consecutive-failure circuit breaker.

States:
  closed     calls pass through; consecutive failures are counted
  open       calls are rejected with ``BrokenCircuitError`` until
             ``half_open_after`` seconds have passed since opening
  half_open  a single trial call is let through; success closes the
             circuit, failure re-opens it for a fresh cooldown

The breaker instance outlives individual calls, so failures are counted
across retries and across pages of one export run.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TypeVar

from .logging import get_logger

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class BrokenCircuitError(RuntimeError):
    """Raised instead of calling the operation while the circuit is open."""

    def __init__(self, retry_in: float):
        super().__init__(f"circuit open; calls rejected for another {retry_in:.1f}s")
        self.retry_in = retry_in


class CircuitBreaker:
    def __init__(
        self,
        threshold: int = 5,
        half_open_after: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = max(1, threshold)
        self.half_open_after = half_open_after
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0
        self._trial_in_flight = False
        self.logger = get_logger()

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self._cooldown_left() <= 0:
            return CircuitState.HALF_OPEN
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    def _cooldown_left(self) -> float:
        return self._opened_at + self.half_open_after - self._clock()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self.logger.warning(
            "circuit opened",
            operation="circuit_breaker",
            failures=self._failures,
            half_open_after=self.half_open_after,
        )

    def _acquire(self) -> None:
        state = self.state
        if state is CircuitState.CLOSED:
            return
        if state is CircuitState.OPEN or self._trial_in_flight:
            raise BrokenCircuitError(max(0.0, self._cooldown_left()))
        self._state = CircuitState.HALF_OPEN
        self._trial_in_flight = True
        self.logger.debug("circuit half-open, allowing trial call", operation="circuit_breaker")

    def record_success(self) -> None:
        if self._state is not CircuitState.CLOSED:
            self.logger.info("circuit closed", operation="circuit_breaker")
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self._failures += 1
        if self._state is CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            self._open()
        elif self._state is CircuitState.CLOSED and self._failures >= self.threshold:
            self._open()

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        self._acquire()
        try:
            result = await fn()
        except Exception:
            self.record_failure()
            raise
        except BaseException:
            # cancelled or interrupted: neither outcome, but free the trial slot
            self._trial_in_flight = False
            raise
        self.record_success()
        return result


__all__ = ["CircuitState", "BrokenCircuitError", "CircuitBreaker"]
