# tests/unit/application/use_cases/test_get_current_rates.py
from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from tariff_sync.application.use_cases.get_current_rates import GetCurrentRatesUseCase
from tariff_sync.application.use_cases.reconcile_box_rates import ReconcileBoxRates


@pytest.mark.anyio
async def test_current_rates_ordered_by_storage_coef_then_region(
    uow_factory, rates_factory, snapshot_factory, t0
) -> None:
    await ReconcileBoxRates(uow_factory).execute(
        snapshot_factory(
            ("Юг", "W1", rates_factory(box_storage_coef="1.50")),
            ("Москва", "W2", rates_factory(box_storage_coef="1.10")),
            ("Алтай", "W3", rates_factory(box_storage_coef="1.50")),
        ),
        now=t0,
    )

    rates = await GetCurrentRatesUseCase(uow_factory).execute(at=t0)

    assert [r.region_name for r in rates] == ["Москва", "Алтай", "Юг"]


@pytest.mark.anyio
async def test_expired_periods_are_excluded(
    uow_factory, rates_factory, snapshot_factory, t0
) -> None:
    await ReconcileBoxRates(uow_factory).execute(
        snapshot_factory(("A", "W", rates_factory()), horizon=date(2025, 9, 20)), now=t0
    )
    uc = GetCurrentRatesUseCase(uow_factory)

    assert len(await uc.execute(at=datetime(2025, 9, 20, tzinfo=UTC))) == 1
    assert await uc.execute(at=datetime(2025, 9, 20, tzinfo=UTC) + timedelta(seconds=1)) == []


@pytest.mark.anyio
async def test_naive_instant_is_rejected(uow_factory) -> None:
    with pytest.raises(ValueError):
        await GetCurrentRatesUseCase(uow_factory).execute(at=datetime(2025, 9, 20))
