"""Centralized retry / backoff helpers.

``run_with_retries`` awaits a zero-argument coroutine factory and retries it
on *any* exception with exponential backoff plus jitter, up to
``RetryConfig.attempts`` attempts in total. The last exception is re-raised
once attempts are exhausted.

Environment overrides:
  ISSUEHISTORY_RETRY_ATTEMPTS (default 10)
  ISSUEHISTORY_RETRY_BASE (seconds base, default 0.128)
  ISSUEHISTORY_RETRY_MAX_SLEEP (seconds cap, default 30)
"""

from __future__ import annotations

import asyncio
import os
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .logging import get_logger

T = TypeVar("T")

_JITTER = random.SystemRandom()

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: int(os.environ.get("ISSUEHISTORY_RETRY_ATTEMPTS", "10")))
    base_sleep: float = field(default_factory=lambda: float(os.environ.get("ISSUEHISTORY_RETRY_BASE", "0.128")))
    max_sleep: float = field(
        default_factory=lambda: float(os.environ.get("ISSUEHISTORY_RETRY_MAX_SLEEP", "30"))
    )


def compute_sleep(attempt: int, cfg: RetryConfig) -> float:
    """Backoff before retry number ``attempt`` (1-based): full jitter over base * 2^(n-1)."""
    ceiling = cfg.base_sleep * (2 ** (attempt - 1))
    sleep_for = _JITTER.uniform(ceiling / 2, ceiling)
    if cfg.max_sleep >= 0:
        sleep_for = min(sleep_for, cfg.max_sleep)
    return sleep_for


async def run_with_retries(
    fn: Callable[[], Awaitable[T]],
    *,
    cfg: RetryConfig | None = None,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    logger = get_logger()
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            if attempt >= attempts:
                raise
            sleep_for = compute_sleep(attempt, cfg)
            logger.warning(
                f"[retry] attempt {attempt}/{attempts} failed, sleeping {sleep_for:.2f}s",
                operation="retry",
                attempt=attempt,
                error=f"{exc.__class__.__name__}: {exc}",
            )
            await sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "compute_sleep", "run_with_retries"]
