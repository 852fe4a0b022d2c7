# tests/unit/infrastructure/resilience/test_retry.py
from __future__ import annotations

import pytest

from tariff_sync.infrastructure.resilience.retry import RetryPolicy, retry_async


class _Flaky:
    def __init__(self, failures: int, exc: type[Exception] = ConnectionError) -> None:
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc("boom")
        return "ok"


async def _no_sleep(_: float) -> None:
    return None


def test_backoff_is_capped_without_jitter() -> None:
    policy = RetryPolicy(total=5, base=0.5, cap=2.0, jitter=False)
    assert [policy.backoff(i) for i in range(4)] == [0.5, 1.0, 2.0, 2.0]


def test_jittered_backoff_stays_within_bounds() -> None:
    policy = RetryPolicy(total=5, base=1.0, cap=4.0, jitter=True)
    assert all(0.0 <= policy.backoff(3) <= 4.0 for _ in range(50))


@pytest.mark.anyio
async def test_retries_until_success() -> None:
    fn = _Flaky(failures=2)
    attempts: list[int] = []

    result = await retry_async(
        fn,
        policy=RetryPolicy(total=3, base=0.0, cap=0.0, jitter=False),
        retry_on=lambda exc: isinstance(exc, ConnectionError),
        on_retry=lambda exc, attempt: attempts.append(attempt),
        sleep=_no_sleep,
    )

    assert result == "ok"
    assert fn.calls == 3
    assert attempts == [0, 1]


@pytest.mark.anyio
async def test_non_retryable_error_propagates_immediately() -> None:
    fn = _Flaky(failures=1, exc=ValueError)

    with pytest.raises(ValueError):
        await retry_async(
            fn,
            policy=RetryPolicy(total=3, base=0.0, cap=0.0, jitter=False),
            retry_on=lambda exc: isinstance(exc, ConnectionError),
            sleep=_no_sleep,
        )

    assert fn.calls == 1


@pytest.mark.anyio
async def test_budget_exhaustion_reraises_last_error() -> None:
    fn = _Flaky(failures=10)

    with pytest.raises(ConnectionError):
        await retry_async(
            fn,
            policy=RetryPolicy(total=2, base=0.0, cap=0.0, jitter=False),
            retry_on=lambda exc: True,
            sleep=_no_sleep,
        )

    assert fn.calls == 3


@pytest.mark.anyio
async def test_delay_hint_raises_backoff_up_to_cap() -> None:
    fn = _Flaky(failures=2)
    hints = iter([1.5, 30.0])
    sleeps: list[float] = []

    async def _record(seconds: float) -> None:
        sleeps.append(seconds)

    await retry_async(
        fn,
        policy=RetryPolicy(total=3, base=0.5, cap=4.0, jitter=False),
        retry_on=lambda exc: True,
        delay_hint=lambda exc: next(hints),
        sleep=_record,
    )

    assert sleeps == [1.5, 4.0]


@pytest.mark.anyio
async def test_no_sleep_after_final_attempt() -> None:
    fn = _Flaky(failures=10)
    sleeps: list[float] = []

    async def _record(seconds: float) -> None:
        sleeps.append(seconds)

    with pytest.raises(ConnectionError):
        await retry_async(
            fn,
            policy=RetryPolicy(total=1, base=0.0, cap=5.0, jitter=False),
            retry_on=lambda exc: True,
            delay_hint=lambda exc: 5.0,
            sleep=_record,
        )

    assert fn.calls == 2
    assert sleeps == [5.0]
