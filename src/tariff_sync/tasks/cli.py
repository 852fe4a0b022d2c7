# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Tariff Sync CLI: operational commands (sync, run, current, seed).

Commands:
    sync                 Run one synchronization (fetch, reconcile, publish).
    run                  Run synchronizations forever on a fixed interval.
    current              Print the current-rates projection as JSON.
    seed spreadsheets    Register publish target spreadsheet ids from JSON.

Environment:
    DATABASE_URL                      Async SQLAlchemy URL.
    WB_TOKEN                          Wildberries API token.
    WB_USE_MOCK                       Serve the development snapshot instead.
    GOOGLE_SERVICE_ACCOUNT_KEY_PATH   Service-account key; publishing is off without it.
    GOOGLE_SPREADSHEETS_CONFIG_PATH   JSON array of spreadsheet ids for ``seed``.
    SYNC_INTERVAL_S                   Cadence of ``run`` (seconds).
"""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import typer
from pydantic import ValidationError

from tariff_sync.adapters.gateways.wildberries_gateway import (
    MockRatesGateway,
    WildberriesRatesGateway,
)
from tariff_sync.adapters.presenters.rates_presenter import present_json
from tariff_sync.adapters.publishers.google_sheets_publisher import GoogleSheetsPublisher
from tariff_sync.adapters.uow.sqlalchemy_uow import make_uow_factory
from tariff_sync.application.uow import UnitOfWork
from tariff_sync.application.use_cases.get_current_rates import GetCurrentRatesUseCase
from tariff_sync.application.use_cases.reconcile_box_rates import ReconcileBoxRates
from tariff_sync.application.use_cases.seed_spreadsheets import SeedSpreadsheetsUseCase
from tariff_sync.application.use_cases.sync_rates import SyncRatesUseCase
from tariff_sync.config.settings import Settings, get_settings
from tariff_sync.domain.exceptions.base import DomainError
from tariff_sync.domain.interfaces.gateways.rates_gateway import RateSnapshotGateway
from tariff_sync.domain.interfaces.repositories.tariff_repositories import (
    SpreadsheetsRepository,
)
from tariff_sync.infrastructure.database.session import (
    dispose_engine,
    get_sessionmaker,
    init_engine_and_sessionmaker,
)
from tariff_sync.infrastructure.external_apis.google_sheets.client import GoogleSheetsClient
from tariff_sync.infrastructure.external_apis.google_sheets.settings import (
    GoogleSheetsSettings,
)
from tariff_sync.infrastructure.external_apis.wildberries.client import WildberriesClient
from tariff_sync.infrastructure.external_apis.wildberries.settings import WildberriesSettings
from tariff_sync.infrastructure.logging.logger import configure_root_logging, get_json_logger
from tariff_sync.infrastructure.observability.metrics import start_metrics_server

log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)
seed_app = typer.Typer(no_args_is_help=True)
app.add_typer(seed_app, name="seed")


def _load_settings() -> Settings:
    try:
        settings = get_settings()
    except RuntimeError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    configure_root_logging(settings.log_level)
    return settings


def _provider_settings(settings: Settings) -> tuple[WildberriesSettings, GoogleSheetsSettings]:
    try:
        wb = WildberriesSettings()
        sheets = GoogleSheetsSettings()
    except ValidationError as exc:
        log.error("cli.invalid_provider_settings", extra={"extra": {"errors": exc.errors()}})
        raise typer.Exit(code=2) from exc
    if wb.use_mock and settings.environment.is_production_like:
        log.error(
            "cli.mock_forbidden",
            extra={"extra": {"environment": settings.environment.value}},
        )
        raise typer.Exit(code=2)
    return wb, sheets


def load_spreadsheet_ids(path: Path) -> list[str]:
    """Read a JSON array of spreadsheet id strings from ``path``."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read spreadsheet ids from {path}: {exc}") from exc
    if not isinstance(payload, list) or not all(isinstance(x, str) for x in payload):
        raise typer.BadParameter(f"{path} must contain a JSON array of strings")
    return payload


def _spreadsheet_ids_source(
    uow_factory: Callable[[], UnitOfWork],
) -> Callable[[], Awaitable[list[str]]]:
    async def _ids() -> list[str]:
        async with uow_factory() as tx:
            repo: SpreadsheetsRepository = tx.get_repository(SpreadsheetsRepository)
            return await repo.list_ids()

    return _ids


@asynccontextmanager
async def _sync_use_case(settings: Settings) -> AsyncIterator[SyncRatesUseCase]:
    """Wire a :class:`SyncRatesUseCase` and close its resources on exit."""
    wb_settings, sheets_settings = _provider_settings(settings)
    init_engine_and_sessionmaker(settings)
    uow_factory = make_uow_factory(get_sessionmaker())

    async with AsyncExitStack() as stack:
        stack.push_async_callback(dispose_engine)

        gateway: RateSnapshotGateway
        if wb_settings.use_mock:
            gateway = MockRatesGateway()
        else:
            wb_client = WildberriesClient(wb_settings)
            stack.push_async_callback(wb_client.aclose)
            gateway = WildberriesRatesGateway(wb_client)

        publisher = None
        if sheets_settings.enabled:
            sheets_client = GoogleSheetsClient(sheets_settings)
            stack.push_async_callback(sheets_client.aclose)
            publisher = GoogleSheetsPublisher(
                client=sheets_client,
                spreadsheet_ids=_spreadsheet_ids_source(uow_factory),
                page_name=settings.spreadsheet_page_name,
                timezone=settings.publish_timezone,
            )
        else:
            log.warning("cli.publishing_disabled")

        yield SyncRatesUseCase(
            gateway=gateway,
            reconcile=ReconcileBoxRates(uow_factory),
            current_rates=GetCurrentRatesUseCase(uow_factory),
            publisher=publisher,
        )


@app.command("sync")
def sync_once() -> None:
    """Run one synchronization and exit (non-zero on failure)."""
    settings = _load_settings()

    async def _run() -> bool:
        async with _sync_use_case(settings) as uc:
            try:
                report = await uc.execute()
            except DomainError:
                return False
        typer.echo(
            json.dumps(
                {
                    "run_id": report.run_id,
                    "periods_created": report.summary.periods_created,
                    "warehouses_seen": report.summary.warehouses_seen,
                    "rates_created": report.summary.rates_created,
                    "current_rates": len(report.current_rates),
                    "published": report.published,
                }
            )
        )
        return True

    if not asyncio.run(_run()):
        raise typer.Exit(code=1)


@app.command("run")
def run_forever(
    interval_s: int | None = typer.Option(  # noqa: B008
        None, min=1, help="Override SYNC_INTERVAL_S for this process."
    ),
    max_runs: int | None = typer.Option(  # noqa: B008
        None, min=1, help="Stop after this many runs (default: run forever)."
    ),
) -> None:
    """Run synchronizations on a fixed cadence; a failed run waits for the next tick."""
    settings = _load_settings()
    interval = float(interval_s or settings.sync_interval_s)
    if settings.metrics_port is not None:
        start_metrics_server(settings.metrics_port)
        log.info("metrics.server_started", extra={"extra": {"port": settings.metrics_port}})

    async def _loop() -> None:
        runs = 0
        async with _sync_use_case(settings) as uc:
            while max_runs is None or runs < max_runs:
                started = time.monotonic()
                try:
                    await uc.execute()
                except Exception:
                    log.exception("scheduler.run_failed")
                runs += 1
                if max_runs is not None and runs >= max_runs:
                    break
                delay = max(0.0, interval - (time.monotonic() - started))
                log.info("scheduler.sleep", extra={"extra": {"seconds": round(delay, 1)}})
                await asyncio.sleep(delay)

    log.info("scheduler.start", extra={"extra": {"interval_s": interval}})
    asyncio.run(_loop())


@app.command("current")
def current_rates(
    at: datetime | None = typer.Option(  # noqa: B008
        None, help="Instant to evaluate (ISO-8601, UTC when naive). Defaults to now."
    ),
) -> None:
    """Print the current-rates projection as JSON."""
    settings = _load_settings()
    instant = at or datetime.now(UTC)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)

    async def _run() -> list[dict[str, object]]:
        init_engine_and_sessionmaker(settings)
        try:
            uc = GetCurrentRatesUseCase(make_uow_factory(get_sessionmaker()))
            return present_json(await uc.execute(at=instant))
        finally:
            await dispose_engine()

    typer.echo(json.dumps(asyncio.run(_run()), ensure_ascii=False, indent=2))


@seed_app.command("spreadsheets")
def seed_spreadsheets(
    path: Path | None = typer.Option(  # noqa: B008
        None, help="JSON array of spreadsheet ids (default: GOOGLE_SPREADSHEETS_CONFIG_PATH)."
    ),
) -> None:
    """Register spreadsheet ids as publish targets (duplicates are ignored)."""
    settings = _load_settings()
    source = path or settings.google_spreadsheets_config_path
    if source is None:
        raise typer.BadParameter("pass --path or set GOOGLE_SPREADSHEETS_CONFIG_PATH")
    ids = load_spreadsheet_ids(source)

    async def _run() -> int:
        init_engine_and_sessionmaker(settings)
        try:
            uc = SeedSpreadsheetsUseCase(make_uow_factory(get_sessionmaker()))
            return await uc.execute(ids)
        finally:
            await dispose_engine()

    inserted = asyncio.run(_run())
    log.info(
        "seed.spreadsheets.done",
        extra={"extra": {"path": str(source), "requested": len(ids), "inserted": inserted}},
    )


if __name__ == "__main__":
    app()
