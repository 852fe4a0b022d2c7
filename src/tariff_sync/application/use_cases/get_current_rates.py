# src/tariff_sync/application/use_cases/get_current_rates.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Use case: Get current rates.

Returns every stored rate whose period is open or ends at/after the given
instant, joined with its warehouse, ordered by storage coefficient then
region name. Read-only; no transaction is committed.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from tariff_sync.application.uow import UnitOfWork
from tariff_sync.domain.entities.tariffs import CurrentRate
from tariff_sync.domain.interfaces.repositories.tariff_repositories import BoxRatesRepository


class GetCurrentRatesUseCase:
    """Read the current-rates projection."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def execute(self, *, at: datetime) -> list[CurrentRate]:
        """Return current rates as of ``at`` (timezone-aware)."""
        if at.tzinfo is None:
            raise ValueError("at must be timezone-aware")
        async with self._uow_factory() as tx:
            repo: BoxRatesRepository = tx.get_repository(BoxRatesRepository)
            return await repo.list_current(at)
