# src/tariff_sync/application/use_cases/reconcile_box_rates.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Use case: reconcile one rate snapshot into the tariff period history.

For every warehouse in the snapshot, inside a single transaction:

1. Resolve the warehouse id from its natural key (created on first sight).
2. Locate the period active at the batch instant ``now``.
3. Decide:

   * no active period        -> open ``[now, H)`` and bind the new rates;
   * rates match (tolerance) -> extend the active period's end to ``H``;
   * rates differ            -> close the active period at ``now``, open
     ``[now, H)`` and bind the new rates.

``now`` is captured once by the caller and reused for every decision and
every row written. Any failure rolls back the whole batch and surfaces as
:class:`ReconciliationFailed` with the original exception chained.

Layer:
    application/use_cases
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from enum import Enum
from uuid import UUID

from tariff_sync.application.uow import UnitOfWork, run_in_uow
from tariff_sync.domain.entities.tariffs import (
    RateSnapshot,
    ReconcileSummary,
    WarehouseRateRecord,
)
from tariff_sync.domain.exceptions.base import DomainError
from tariff_sync.domain.exceptions.tariffs import ReconciliationFailed
from tariff_sync.domain.interfaces.repositories.tariff_repositories import (
    BoxRatesRepository,
    TariffPeriodsRepository,
    WarehousesRepository,
)
from tariff_sync.domain.services.period_locator import select_active_period
from tariff_sync.domain.services.rate_comparator import first_mismatch
from tariff_sync.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)


class WarehouseOutcome(str, Enum):
    """Decision taken for one warehouse."""

    CREATED = "created"
    EXTENDED = "extended"
    ROLLED_OVER = "rolled_over"


@dataclass
class _Counters:
    periods_created: int = 0
    rates_created: int = 0
    warehouses_seen: int = 0

    def record(self, outcome: WarehouseOutcome) -> None:
        self.warehouses_seen += 1
        if outcome is not WarehouseOutcome.EXTENDED:
            self.periods_created += 1
            self.rates_created += 1

    def freeze(self) -> ReconcileSummary:
        return ReconcileSummary(
            periods_created=self.periods_created,
            warehouses_seen=self.warehouses_seen,
            rates_created=self.rates_created,
        )


def horizon_instant(horizon_date: date) -> datetime:
    """Return the UTC instant at which a snapshot's horizon date begins."""
    return datetime.combine(horizon_date, time.min, tzinfo=UTC)


class ReconcileBoxRates:
    """Reconcile a :class:`RateSnapshot` against the stored period history."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        """Initialize the use case.

        Args:
            uow_factory: Zero-arg factory returning a fresh UnitOfWork per batch.
        """
        self._uow_factory = uow_factory

    async def execute(self, snapshot: RateSnapshot, *, now: datetime) -> ReconcileSummary:
        """Run one batch.

        Args:
            snapshot: Parsed upstream snapshot.
            now: Batch reference instant (timezone-aware), captured once.

        Returns:
            Counters of rows created and warehouses seen.

        Raises:
            ValueError: If ``now`` is naive.
            ReconciliationFailed: If anything fails inside the transaction.
        """
        if now.tzinfo is None:
            raise ValueError("now must be timezone-aware")

        horizon = horizon_instant(snapshot.horizon_date)
        if horizon < now:
            log.warning(
                "reconcile.horizon_in_past",
                extra={"extra": {"horizon": horizon.isoformat(), "now": now.isoformat()}},
            )

        log.info(
            "reconcile.start",
            extra={
                "extra": {
                    "warehouses": len(snapshot.warehouses),
                    "horizon": horizon.isoformat(),
                    "now": now.isoformat(),
                }
            },
        )

        async def _batch(tx: UnitOfWork) -> ReconcileSummary:
            return await self._reconcile(tx, snapshot, now=now, horizon=horizon)

        try:
            summary = await run_in_uow(self._uow_factory(), _batch)
        except Exception as exc:
            details: dict[str, object] = {"cause": type(exc).__name__}
            if isinstance(exc, DomainError):
                details.update(exc.details)
                details["code"] = exc.code
            log.error(
                "reconcile.failed",
                exc_info=True,
                extra={"extra": details},
            )
            raise ReconciliationFailed(
                f"Data processing failed: {exc}", details=details
            ) from exc

        log.info(
            "reconcile.done",
            extra={
                "extra": {
                    "periods_created": summary.periods_created,
                    "warehouses_seen": summary.warehouses_seen,
                    "rates_created": summary.rates_created,
                }
            },
        )
        return summary

    async def _reconcile(
        self,
        tx: UnitOfWork,
        snapshot: RateSnapshot,
        *,
        now: datetime,
        horizon: datetime,
    ) -> ReconcileSummary:
        warehouses: WarehousesRepository = tx.get_repository(WarehousesRepository)
        periods: TariffPeriodsRepository = tx.get_repository(TariffPeriodsRepository)
        rates: BoxRatesRepository = tx.get_repository(BoxRatesRepository)

        await periods.acquire_batch_lock()

        counters = _Counters()
        for record in snapshot.warehouses:
            warehouse_id = await warehouses.resolve(record.region_name, record.warehouse_name)
            outcome = await self._reconcile_warehouse(
                periods, rates, warehouse_id, record, now=now, horizon=horizon
            )
            counters.record(outcome)
        return counters.freeze()

    async def _reconcile_warehouse(
        self,
        periods: TariffPeriodsRepository,
        rates: BoxRatesRepository,
        warehouse_id: UUID,
        record: WarehouseRateRecord,
        *,
        now: datetime,
        horizon: datetime,
    ) -> WarehouseOutcome:
        label = f"{record.region_name} - {record.warehouse_name}"
        candidates = await periods.list_active_periods(warehouse_id, now)
        current = select_active_period(warehouse_id, candidates, now)

        if current is None:
            period = await periods.create(now, horizon)
            await rates.upsert(warehouse_id, period.id, record.rates)
            log.info(
                "reconcile.period_created",
                extra={"extra": {"warehouse": label, "period_id": str(period.id)}},
            )
            return WarehouseOutcome.CREATED

        existing = await rates.get_for_period(warehouse_id, current.id)
        if existing is None:
            log.warning(
                "reconcile.rate_missing",
                extra={"extra": {"warehouse": label, "period_id": str(current.id)}},
            )
            mismatch_field: str | None = "<missing>"
        else:
            mismatch = first_mismatch(existing.rates, record.rates)
            mismatch_field = mismatch.field if mismatch is not None else None
            if mismatch is not None:
                log.info(
                    "reconcile.rate_mismatch",
                    extra={
                        "extra": {
                            "warehouse": label,
                            "field": mismatch.field,
                            "stored": str(mismatch.existing),
                            "incoming": str(mismatch.incoming),
                        }
                    },
                )

        if mismatch_field is None:
            await periods.set_end(current.id, horizon)
            log.info(
                "reconcile.period_extended",
                extra={
                    "extra": {
                        "warehouse": label,
                        "period_id": str(current.id),
                        "end": horizon.isoformat(),
                    }
                },
            )
            return WarehouseOutcome.EXTENDED

        await periods.set_end(current.id, now)
        period = await periods.create(now, horizon)
        await rates.upsert(warehouse_id, period.id, record.rates)
        log.info(
            "reconcile.period_rolled_over",
            extra={
                "extra": {
                    "warehouse": label,
                    "closed_period_id": str(current.id),
                    "period_id": str(period.id),
                    "field": mismatch_field,
                }
            },
        )
        return WarehouseOutcome.ROLLED_OVER
