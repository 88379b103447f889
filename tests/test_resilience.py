from __future__ import annotations

import asyncio

import pytest

from issuehistory.circuit_breaker import BrokenCircuitError, CircuitBreaker, CircuitState
from issuehistory.resilience import ResiliencePolicy
from issuehistory.retry import RetryConfig


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _policy(clock: FakeClock, sleeps: list[float]) -> ResiliencePolicy:
    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return ResiliencePolicy(
        retry=RetryConfig(attempts=10, base_sleep=0.01, max_sleep=0.05),
        breaker=CircuitBreaker(threshold=5, half_open_after=60, clock=clock),
        sleep=fake_sleep,
    )


def test_persistent_failure_stops_reaching_network_after_breaker_opens():
    clock = FakeClock()
    sleeps: list[float] = []
    policy = _policy(clock, sleeps)
    calls: list[int] = []

    async def fetch() -> str:
        calls.append(1)
        raise ConnectionError("down")

    with pytest.raises(BrokenCircuitError):
        asyncio.run(policy.execute(fetch))
    # 5 real attempts open the breaker; the other 5 are rejected locally
    assert len(calls) == 5
    assert len(sleeps) == 9
    assert policy.breaker.state is CircuitState.OPEN


def test_transient_failure_recovers_within_retry_budget():
    clock = FakeClock()
    policy = _policy(clock, [])
    calls: list[int] = []

    async def fetch() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise TimeoutError("slow")
        return "page"

    assert asyncio.run(policy.execute(fetch)) == "page"
    assert len(calls) == 3
    assert policy.breaker.consecutive_failures == 0


def test_breaker_state_is_shared_across_executions():
    clock = FakeClock()
    policy = ResiliencePolicy(
        retry=RetryConfig(attempts=1),
        breaker=CircuitBreaker(threshold=5, half_open_after=60, clock=clock),
    )
    calls: list[int] = []

    async def fetch() -> str:
        calls.append(1)
        raise ConnectionError("down")

    for _ in range(5):
        with pytest.raises(ConnectionError):
            asyncio.run(policy.execute(fetch))
    with pytest.raises(BrokenCircuitError):
        asyncio.run(policy.execute(fetch))
    assert len(calls) == 5
