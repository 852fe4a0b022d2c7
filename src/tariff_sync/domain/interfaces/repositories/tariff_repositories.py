# src/tariff_sync/domain/interfaces/repositories/tariff_repositories.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Domain-facing interfaces for tariff repositories.

This module defines the persistence contracts used by the reconciliation and
read-side use cases:

* WarehousesRepository: natural key -> surrogate id resolution.
* TariffPeriodsRepository: period lookup and lifecycle (create / set end).
* BoxRatesRepository: rate rows bound to (warehouse, period) pairs and the
  current-rates projection.
* SpreadsheetsRepository: publish targets.

Notes:
    * This interface is persistence-agnostic; implementations may use
      SQLAlchemy, another ORM, or a raw driver.
    * Implementations never commit; the Unit of Work owns the transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from tariff_sync.domain.entities.tariffs import BoxRate, CurrentRate, RateVector, TariffPeriod


class WarehousesRepository(Protocol):
    """Entity resolver for warehouses."""

    async def resolve(self, region_name: str, warehouse_name: str) -> UUID:
        """Return the id for ``(region_name, warehouse_name)``, creating the row on first sight.

        Idempotent across repeated calls with the same key.
        """
        raise NotImplementedError


class TariffPeriodsRepository(Protocol):
    """Persistence contract for tariff periods."""

    async def acquire_batch_lock(self) -> None:
        """Serialize reconciliation batches for the rest of the current transaction."""
        raise NotImplementedError

    async def list_active_periods(self, warehouse_id: UUID, at: datetime) -> list[TariffPeriod]:
        """Return every period bound to ``warehouse_id`` that is active at ``at``.

        A period is active when ``start <= at`` and (``end`` is null or
        ``end >= at``). Under correct operation the list has at most one item.
        """
        raise NotImplementedError

    async def create(self, start: datetime, end: datetime | None) -> TariffPeriod:
        """Insert a new period ``[start, end)`` and return it."""
        raise NotImplementedError

    async def set_end(self, period_id: UUID, end: datetime | None) -> None:
        """Move the end bound of an existing period."""
        raise NotImplementedError


class BoxRatesRepository(Protocol):
    """Persistence contract for box rates."""

    async def get_for_period(self, warehouse_id: UUID, period_id: UUID) -> BoxRate | None:
        """Return the rate row bound to ``(warehouse_id, period_id)``, if any."""
        raise NotImplementedError

    async def upsert(self, warehouse_id: UUID, period_id: UUID, rates: RateVector) -> BoxRate:
        """Insert the rate row for the pair, overwriting the vector on conflict."""
        raise NotImplementedError

    async def list_current(self, at: datetime) -> list[CurrentRate]:
        """Return rates whose period is open or ends at/after ``at``.

        Ordered by storage coefficient ascending, then region name ascending.
        """
        raise NotImplementedError


class SpreadsheetsRepository(Protocol):
    """Publish target registry."""

    async def list_ids(self) -> list[str]:
        """Return all spreadsheet ids ordered by id."""
        raise NotImplementedError

    async def add_ids(self, spreadsheet_ids: Sequence[str]) -> int:
        """Register spreadsheet ids, ignoring duplicates; return the number inserted."""
        raise NotImplementedError
