# src/tariff_sync/adapters/repositories/warehouses_repository.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""SQLAlchemy repository for warehouses."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from tariff_sync.adapters.repositories.base_repository import BaseRepository
from tariff_sync.infrastructure.database.models.tariffs import WarehouseRow


class SqlAlchemyWarehousesRepository(BaseRepository[WarehouseRow]):
    """Resolve warehouses by natural key, creating them on first sight."""

    async def resolve(self, region_name: str, warehouse_name: str) -> UUID:
        stmt = (
            pg_insert(WarehouseRow)
            .values(geo_name=region_name, warehouse_name=warehouse_name)
            .on_conflict_do_nothing(index_elements=["geo_name", "warehouse_name"])
        )
        await self._session.execute(stmt)
        row = await self.fetch_one(
            select(WarehouseRow).where(
                WarehouseRow.geo_name == region_name,
                WarehouseRow.warehouse_name == warehouse_name,
            )
        )
        return row.id
