# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Retry utilities (async) with jittered exponential backoff.

Only transport-level calls use this (one HTTP request to a provider). A
failed synchronization run is never retried here; the next scheduled run is
the retry.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry attempts."""

    total: int  # number of retries (not counting the first attempt)
    base: float  # base backoff seconds
    cap: float  # max backoff seconds
    jitter: bool = True  # full jitter if True

    def backoff(self, attempt: int) -> float:
        """Return the sleep before retry number ``attempt`` (0-based)."""
        delay = min(self.cap, self.base * (2**attempt))
        if self.jitter:
            delay = random.uniform(0, delay)  # noqa: S311
        return delay


NO_RETRY = RetryPolicy(total=0, base=0.0, cap=0.0, jitter=False)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    retry_on: Callable[[Exception], bool],
    on_retry: Callable[[Exception, int], None] | None = None,
    delay_hint: Callable[[Exception], float | None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``fn`` until it succeeds or the retry budget is exhausted.

    Args:
        fn: Zero-arg async function to execute.
        policy: RetryPolicy defining count/backoff.
        retry_on: Predicate returning True for retryable exceptions.
        on_retry: Optional hook called with the exception and attempt number
            before each retry (metrics, logging).
        delay_hint: Optional server-suggested delay for an exception (e.g.
            ``Retry-After``). It raises the backoff but never above ``policy.cap``.
        sleep: Awaitable sleep function (injectable for tests).

    Returns:
        The return value of ``fn``.

    Raises:
        The last exception once retries are exhausted or it is not retryable.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:  # noqa: BLE001
            if attempt >= policy.total or not retry_on(exc):
                raise
            if on_retry is not None:
                on_retry(exc, attempt)
            delay = policy.backoff(attempt)
            hinted = delay_hint(exc) if delay_hint is not None else None
            if hinted is not None:
                delay = min(policy.cap, max(delay, hinted))
        await sleep(delay)
        attempt += 1
