# tests/unit/application/conftest.py
"""In-memory fakes for the tariff repositories and Unit of Work.

The fake UoW snapshots the store on enter and restores it on rollback, so
tests can assert all-or-nothing behavior without a database.
"""

from __future__ import annotations

import dataclasses
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import pytest

from tariff_sync.domain.entities.tariffs import (
    RATE_FIELDS,
    BoxRate,
    CurrentRate,
    RateSnapshot,
    RateVector,
    TariffPeriod,
    WarehouseRateRecord,
)
from tariff_sync.domain.interfaces.repositories.tariff_repositories import (
    BoxRatesRepository,
    SpreadsheetsRepository,
    TariffPeriodsRepository,
    WarehousesRepository,
)


@dataclass
class InMemoryStore:
    warehouses: dict[tuple[str, str], UUID] = field(default_factory=dict)
    periods: dict[UUID, TariffPeriod] = field(default_factory=dict)
    rates: dict[tuple[UUID, UUID], BoxRate] = field(default_factory=dict)
    spreadsheets: list[str] = field(default_factory=list)
    locks_taken: int = 0
    commits: int = 0
    rollbacks: int = 0
    fail_on_upsert: int | None = None
    upserts: int = 0

    def capture(self) -> tuple[Any, ...]:
        return (
            dict(self.warehouses),
            dict(self.periods),
            dict(self.rates),
            list(self.spreadsheets),
        )

    def restore(self, state: tuple[Any, ...]) -> None:
        self.warehouses, self.periods, self.rates, self.spreadsheets = (
            dict(state[0]),
            dict(state[1]),
            dict(state[2]),
            list(state[3]),
        )

    def warehouse_id(self, region: str, name: str) -> UUID:
        return self.warehouses[(region, name)]

    def periods_for(self, warehouse_id: UUID) -> list[TariffPeriod]:
        found = [self.periods[pid] for (wid, pid) in self.rates if wid == warehouse_id]
        return sorted(found, key=lambda p: p.start)


class FakeWarehousesRepository(WarehousesRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def resolve(self, region_name: str, warehouse_name: str) -> UUID:
        key = (region_name, warehouse_name)
        if key not in self._store.warehouses:
            self._store.warehouses[key] = uuid.uuid4()
        return self._store.warehouses[key]


class FakeTariffPeriodsRepository(TariffPeriodsRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def acquire_batch_lock(self) -> None:
        self._store.locks_taken += 1

    async def list_active_periods(self, warehouse_id: UUID, at: datetime) -> list[TariffPeriod]:
        return [p for p in self._store.periods_for(warehouse_id) if p.is_active_at(at)]

    async def create(self, start: datetime, end: datetime | None) -> TariffPeriod:
        period = TariffPeriod(id=uuid.uuid4(), start=start, end=end)
        self._store.periods[period.id] = period
        return period

    async def set_end(self, period_id: UUID, end: datetime | None) -> None:
        self._store.periods[period_id] = dataclasses.replace(
            self._store.periods[period_id], end=end
        )


class FakeBoxRatesRepository(BoxRatesRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def get_for_period(self, warehouse_id: UUID, period_id: UUID) -> BoxRate | None:
        return self._store.rates.get((warehouse_id, period_id))

    async def upsert(self, warehouse_id: UUID, period_id: UUID, rates: RateVector) -> BoxRate:
        self._store.upserts += 1
        if self._store.fail_on_upsert == self._store.upserts:
            raise RuntimeError("simulated storage failure")
        existing = self._store.rates.get((warehouse_id, period_id))
        row = BoxRate(
            id=existing.id if existing else uuid.uuid4(),
            warehouse_id=warehouse_id,
            tariff_period_id=period_id,
            rates=rates,
        )
        self._store.rates[(warehouse_id, period_id)] = row
        return row

    async def list_current(self, at: datetime) -> list[CurrentRate]:
        names = {wid: key for key, wid in self._store.warehouses.items()}
        out: list[CurrentRate] = []
        for (wid, pid), row in self._store.rates.items():
            period = self._store.periods[pid]
            if period.end is not None and period.end < at:
                continue
            region, name = names[wid]
            out.append(
                CurrentRate(
                    region_name=region,
                    warehouse_name=name,
                    start_date=period.start,
                    end_date=period.end,
                    rates=row.rates,
                )
            )
        return sorted(
            out, key=lambda r: (r.rates.box_storage_coef, r.region_name, r.warehouse_name)
        )


class FakeSpreadsheetsRepository(SpreadsheetsRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    async def list_ids(self) -> list[str]:
        return sorted(self._store.spreadsheets)

    async def add_ids(self, spreadsheet_ids: Sequence[str]) -> int:
        added = 0
        for sid in spreadsheet_ids:
            if sid not in self._store.spreadsheets:
                self._store.spreadsheets.append(sid)
                added += 1
        return added


class FakeUnitOfWork:
    """Transactional fake: rollback restores the state captured on enter."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._saved: tuple[Any, ...] | None = None
        self._repos: dict[type[Any], Any] = {
            WarehousesRepository: FakeWarehousesRepository(store),
            TariffPeriodsRepository: FakeTariffPeriodsRepository(store),
            BoxRatesRepository: FakeBoxRatesRepository(store),
            SpreadsheetsRepository: FakeSpreadsheetsRepository(store),
        }

    async def __aenter__(self) -> FakeUnitOfWork:
        self._saved = self._store.capture()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        return None

    async def commit(self) -> None:
        self._store.commits += 1

    async def rollback(self) -> None:
        assert self._saved is not None
        self._store.restore(self._saved)
        self._store.rollbacks += 1

    def get_repository(self, repo_type: type[Any]) -> Any:
        return self._repos[repo_type]


def make_rates(**overrides: str) -> RateVector:
    base = {name: Decimal("1.00") for name in RATE_FIELDS}
    base.update({k: Decimal(v) for k, v in overrides.items()})
    return RateVector(**base)


def make_snapshot(
    *records: tuple[str, str, RateVector],
    horizon: date = date(2025, 9, 30),
) -> RateSnapshot:
    return RateSnapshot(
        horizon_date=horizon,
        warehouses=[
            WarehouseRateRecord(region_name=r, warehouse_name=w, rates=v) for r, w, v in records
        ],
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store: InMemoryStore) -> Callable[[], FakeUnitOfWork]:
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def rates_factory() -> Callable[..., RateVector]:
    return make_rates


@pytest.fixture
def snapshot_factory() -> Callable[..., RateSnapshot]:
    return make_snapshot


@pytest.fixture
def t0() -> datetime:
    return datetime(2025, 9, 19, 12, 0, tzinfo=UTC)
