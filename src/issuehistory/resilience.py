"""Retry composed with a circuit breaker.

Every retry attempt goes through the breaker. Once the breaker opens, the
remaining attempts fail fast with ``BrokenCircuitError`` and never reach the
network.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .circuit_breaker import CircuitBreaker
from .retry import RetryConfig, Sleeper, run_with_retries

T = TypeVar("T")


class ResiliencePolicy:
    def __init__(
        self,
        retry: RetryConfig | None = None,
        breaker: CircuitBreaker | None = None,
        sleep: Sleeper | None = None,
    ):
        self.retry = retry or RetryConfig()
        self.breaker = breaker or CircuitBreaker()
        self._sleep = sleep or asyncio.sleep

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        async def _attempt() -> T:
            return await self.breaker.call(fn)

        return await run_with_retries(_attempt, cfg=self.retry, sleep=self._sleep)


__all__ = ["ResiliencePolicy"]
