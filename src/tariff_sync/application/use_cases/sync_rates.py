# src/tariff_sync/application/use_cases/sync_rates.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Use case: one end-to-end synchronization run.

Flow:
    1. Capture the batch instant ``now`` once from the injected clock.
    2. Fetch the upstream snapshot for today's date. A fetch failure aborts
       the run before any reconciliation.
    3. Reconcile the snapshot in a single transaction.
    4. Query the current-rates projection with a fresh clock reading taken
       after the commit, so periods closed at ``now`` are not published.
    5. Publish it. A publish failure is logged and reported through
       ``SyncReport.published`` whatever its type; reconciled data is kept.

Every log line emitted during the run carries the same ``run_id``.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from tariff_sync.application.interfaces.spreadsheet_publisher import SpreadsheetPublisher
from tariff_sync.application.use_cases.get_current_rates import GetCurrentRatesUseCase
from tariff_sync.application.use_cases.reconcile_box_rates import ReconcileBoxRates
from tariff_sync.domain.entities.tariffs import CurrentRate, ReconcileSummary
from tariff_sync.domain.exceptions.base import DomainError
from tariff_sync.domain.exceptions.tariffs import PublishError
from tariff_sync.domain.interfaces.gateways.rates_gateway import RateSnapshotGateway
from tariff_sync.infrastructure.logging.logger import get_json_logger, set_run_id
from tariff_sync.infrastructure.observability import metrics

log = get_json_logger(__name__)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class SyncReport:
    """Outcome of one synchronization run."""

    run_id: str
    now: datetime
    summary: ReconcileSummary
    current_rates: list[CurrentRate] = field(default_factory=list)
    published: bool = False
    spreadsheets_updated: int = 0


class SyncRatesUseCase:
    """Fetch, reconcile, query and publish in one run."""

    def __init__(
        self,
        *,
        gateway: RateSnapshotGateway,
        reconcile: ReconcileBoxRates,
        current_rates: GetCurrentRatesUseCase,
        publisher: SpreadsheetPublisher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the use case.

        Args:
            gateway: Upstream snapshot source.
            reconcile: Reconciliation use case.
            current_rates: Read-side query.
            publisher: Spreadsheet publisher; ``None`` disables publishing.
            clock: Returns the timezone-aware batch instant.
        """
        self._gateway = gateway
        self._reconcile = reconcile
        self._current_rates = current_rates
        self._publisher = publisher
        self._clock = clock

    async def execute(self) -> SyncReport:
        """Run one synchronization.

        Raises:
            UpstreamUnavailable, UpstreamAuthError, UpstreamValidationError,
            RateParseError: The snapshot could not be fetched or parsed.
            ReconciliationFailed: The batch was rolled back.
        """
        run_id = uuid.uuid4().hex
        set_run_id(run_id)
        started = time.perf_counter()
        now = self._clock()
        if now.tzinfo is None:
            raise ValueError("clock must return a timezone-aware datetime")

        log.info("sync.start", extra={"extra": {"now": now.isoformat()}})
        try:
            report = await self._run(run_id, now)
        except DomainError as exc:
            metrics.sync_runs_total.labels(outcome=exc.code.lower()).inc()
            log.error(
                "sync.failed",
                extra={"extra": {"code": exc.code, "details": exc.details}},
            )
            raise
        finally:
            metrics.sync_run_duration_seconds.observe(time.perf_counter() - started)

        metrics.sync_runs_total.labels(outcome="ok").inc()
        log.info(
            "sync.done",
            extra={
                "extra": {
                    "periods_created": report.summary.periods_created,
                    "warehouses_seen": report.summary.warehouses_seen,
                    "rates_created": report.summary.rates_created,
                    "current_rates": len(report.current_rates),
                    "published": report.published,
                }
            },
        )
        return report

    async def _run(self, run_id: str, now: datetime) -> SyncReport:
        snapshot = await self._gateway.fetch_snapshot(as_of=now.date())
        log.info(
            "sync.snapshot_fetched",
            extra={
                "extra": {
                    "warehouses": len(snapshot.warehouses),
                    "horizon_date": snapshot.horizon_date.isoformat(),
                }
            },
        )

        summary = await self._reconcile.execute(snapshot, now=now)
        metrics.periods_created_total.inc(summary.periods_created)
        metrics.rates_created_total.inc(summary.rates_created)

        # Read after the commit: a period closed at `now` is no longer current.
        read_at = self._clock()
        current = await self._current_rates.execute(at=read_at)

        published = False
        updated = 0
        if self._publisher is None:
            log.info("sync.publish_skipped")
        else:
            try:
                updated = await self._publisher.publish(current)
            except PublishError as exc:
                metrics.publish_total.labels(outcome="error").inc()
                log.error(
                    "sync.publish_failed",
                    exc_info=True,
                    extra={"extra": {"code": exc.code, "details": exc.details}},
                )
            except Exception as exc:
                metrics.publish_total.labels(outcome="error").inc()
                log.error(
                    "sync.publish_failed",
                    exc_info=True,
                    extra={"extra": {"cause": type(exc).__name__}},
                )
            else:
                published = True
                metrics.publish_total.labels(outcome="ok").inc()

        return SyncReport(
            run_id=run_id,
            now=now,
            summary=summary,
            current_rates=current,
            published=published,
            spreadsheets_updated=updated,
        )
