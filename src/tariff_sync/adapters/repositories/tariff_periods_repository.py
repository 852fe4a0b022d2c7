# src/tariff_sync/adapters/repositories/tariff_periods_repository.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""SQLAlchemy repository for tariff periods.

Periods carry no warehouse column; a period belongs to a warehouse through
its box rate rows, so the active-period lookup joins ``box_rates``.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, text, update

from tariff_sync.adapters.repositories.base_repository import BaseRepository
from tariff_sync.domain.entities.tariffs import TariffPeriod
from tariff_sync.infrastructure.database.models.tariffs import BoxRateRow, TariffPeriodRow

#: Transaction-scoped advisory lock key shared by every reconciliation batch.
BATCH_LOCK_KEY = 0x74617269666673


def _to_entity(row: TariffPeriodRow) -> TariffPeriod:
    return TariffPeriod(id=row.id, start=row.start_date, end=row.end_date)


class SqlAlchemyTariffPeriodsRepository(BaseRepository[TariffPeriodRow]):
    """Period lookup and lifecycle."""

    async def acquire_batch_lock(self) -> None:
        await self._session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"), {"key": BATCH_LOCK_KEY}
        )

    async def list_active_periods(self, warehouse_id: UUID, at: datetime) -> list[TariffPeriod]:
        stmt = (
            select(TariffPeriodRow)
            .join(BoxRateRow, BoxRateRow.tariff_period_id == TariffPeriodRow.id)
            .where(
                BoxRateRow.warehouse_id == warehouse_id,
                TariffPeriodRow.start_date <= at,
                or_(TariffPeriodRow.end_date.is_(None), TariffPeriodRow.end_date >= at),
            )
            .order_by(TariffPeriodRow.start_date.desc(), TariffPeriodRow.id.asc())
        )
        return [_to_entity(row) for row in await self.fetch_all(stmt)]

    async def create(self, start: datetime, end: datetime | None) -> TariffPeriod:
        row = TariffPeriodRow(start_date=start, end_date=end)
        self._session.add(row)
        await self._session.flush()
        return _to_entity(row)

    async def set_end(self, period_id: UUID, end: datetime | None) -> None:
        await self._session.execute(
            update(TariffPeriodRow)
            .where(TariffPeriodRow.id == period_id)
            .values(end_date=end, updated_at=self.utc_now())
        )
