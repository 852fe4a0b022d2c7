# src/tariff_sync/adapters/repositories/box_rates_repository.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""SQLAlchemy repository for box rates and the current-rates projection."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from tariff_sync.adapters.repositories.base_repository import BaseRepository
from tariff_sync.domain.entities.tariffs import RATE_FIELDS, BoxRate, CurrentRate, RateVector
from tariff_sync.infrastructure.database.models.tariffs import (
    BoxRateRow,
    TariffPeriodRow,
    WarehouseRow,
)


def _rates_from(obj: Any) -> RateVector:
    return RateVector(**{name: getattr(obj, name) for name in RATE_FIELDS})


class SqlAlchemyBoxRatesRepository(BaseRepository[BoxRateRow]):
    """Rate rows bound to ``(warehouse, period)`` pairs."""

    async def get_for_period(self, warehouse_id: UUID, period_id: UUID) -> BoxRate | None:
        row = await self.fetch_optional(
            select(BoxRateRow).where(
                BoxRateRow.warehouse_id == warehouse_id,
                BoxRateRow.tariff_period_id == period_id,
            )
        )
        if row is None:
            return None
        return BoxRate(
            id=row.id,
            warehouse_id=row.warehouse_id,
            tariff_period_id=row.tariff_period_id,
            rates=_rates_from(row),
        )

    async def upsert(self, warehouse_id: UUID, period_id: UUID, rates: RateVector) -> BoxRate:
        values = rates.as_dict()
        stmt = pg_insert(BoxRateRow).values(
            warehouse_id=warehouse_id,
            tariff_period_id=period_id,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["warehouse_id", "tariff_period_id"],
            set_={
                **{name: stmt.excluded[name] for name in RATE_FIELDS},
                "updated_at": self.utc_now(),
            },
        ).returning(BoxRateRow.id)
        result = await self._session.execute(stmt)
        return BoxRate(
            id=result.scalar_one(),
            warehouse_id=warehouse_id,
            tariff_period_id=period_id,
            rates=rates,
        )

    async def list_current(self, at: datetime) -> list[CurrentRate]:
        stmt = (
            select(
                WarehouseRow.geo_name,
                WarehouseRow.warehouse_name,
                TariffPeriodRow.start_date,
                TariffPeriodRow.end_date,
                *(getattr(BoxRateRow, name) for name in RATE_FIELDS),
            )
            .select_from(BoxRateRow)
            .join(WarehouseRow, WarehouseRow.id == BoxRateRow.warehouse_id)
            .join(TariffPeriodRow, TariffPeriodRow.id == BoxRateRow.tariff_period_id)
            .where(or_(TariffPeriodRow.end_date.is_(None), TariffPeriodRow.end_date >= at))
            .order_by(
                BoxRateRow.box_storage_coef.asc(),
                WarehouseRow.geo_name.asc(),
                WarehouseRow.warehouse_name.asc(),
            )
        )
        result = await self._session.execute(stmt)
        return [
            CurrentRate(
                region_name=row.geo_name,
                warehouse_name=row.warehouse_name,
                start_date=row.start_date,
                end_date=row.end_date,
                rates=_rates_from(row),
            )
            for row in result.all()
        ]
