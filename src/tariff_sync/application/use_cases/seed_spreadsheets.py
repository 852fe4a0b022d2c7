# src/tariff_sync/application/use_cases/seed_spreadsheets.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Use case: register publish target spreadsheets.

Ids are stripped and de-duplicated; ids already stored are left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from tariff_sync.application.uow import UnitOfWork, run_in_uow
from tariff_sync.domain.interfaces.repositories.tariff_repositories import (
    SpreadsheetsRepository,
)

logger = logging.getLogger(__name__)


class SeedSpreadsheetsUseCase:
    """Insert spreadsheet ids into the publish target registry."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def execute(self, spreadsheet_ids: Iterable[str]) -> int:
        """Register ``spreadsheet_ids``; return how many were newly inserted."""
        cleaned: list[str] = []
        for raw in spreadsheet_ids:
            sid = raw.strip()
            if sid and sid not in cleaned:
                cleaned.append(sid)
        if not cleaned:
            return 0

        async def _insert(tx: UnitOfWork) -> int:
            repo: SpreadsheetsRepository = tx.get_repository(SpreadsheetsRepository)
            return await repo.add_ids(cleaned)

        inserted = await run_in_uow(self._uow_factory(), _insert)
        logger.info(
            "spreadsheets.seeded",
            extra={"extra": {"requested": len(cleaned), "inserted": inserted}},
        )
        return inserted
