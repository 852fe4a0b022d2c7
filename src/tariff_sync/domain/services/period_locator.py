# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Period locator.

Purpose:
    Pick the tariff period covering a reference instant for one warehouse.
    Overlapping active periods are a data-integrity violation: they are
    reported, never silently resolved by picking an arbitrary row.

Layer:
    domain/services
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from tariff_sync.domain.entities.tariffs import TariffPeriod
from tariff_sync.domain.exceptions.tariffs import PeriodIntegrityError


def select_active_period(
    warehouse_id: UUID,
    candidates: Sequence[TariffPeriod],
    at: datetime,
) -> TariffPeriod | None:
    """Return the single period active at ``at`` among ``candidates``.

    Args:
        warehouse_id: Warehouse the candidates belong to (for error details).
        candidates: Periods bound to the warehouse; inactive ones are ignored.
        at: Reference instant of the batch.

    Returns:
        The active period, or ``None`` when no candidate covers ``at``.

    Raises:
        PeriodIntegrityError: If more than one candidate is active at ``at``.
    """
    active = [p for p in candidates if p.is_active_at(at)]
    if not active:
        return None
    if len(active) > 1:
        raise PeriodIntegrityError(
            "multiple_active_periods",
            details={
                "warehouse_id": str(warehouse_id),
                "at": at.isoformat(),
                "period_ids": sorted(str(p.id) for p in active),
            },
        )
    return active[0]
