# src/tariff_sync/adapters/repositories/spreadsheets_repository.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""SQLAlchemy repository for publish target spreadsheets."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from tariff_sync.adapters.repositories.base_repository import BaseRepository
from tariff_sync.infrastructure.database.models.tariffs import SpreadsheetRow


class SqlAlchemySpreadsheetsRepository(BaseRepository[SpreadsheetRow]):
    """Spreadsheet id registry."""

    async def list_ids(self) -> list[str]:
        result = await self._session.execute(
            select(SpreadsheetRow.spreadsheet_id).order_by(SpreadsheetRow.spreadsheet_id.asc())
        )
        return list(result.scalars().all())

    async def add_ids(self, spreadsheet_ids: Sequence[str]) -> int:
        if not spreadsheet_ids:
            return 0
        stmt = (
            pg_insert(SpreadsheetRow)
            .values([{"spreadsheet_id": sid} for sid in spreadsheet_ids])
            .on_conflict_do_nothing(index_elements=["spreadsheet_id"])
            .returning(SpreadsheetRow.id)
        )
        result = await self._session.execute(stmt)
        return len(result.all())
