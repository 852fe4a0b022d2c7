# src/tariff_sync/adapters/publishers/google_sheets_publisher.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Spreadsheet publisher backed by Google Sheets.

For every registered spreadsheet id (ordered by id):

1. ensure a page named ``page_name`` exists (``addSheet`` otherwise),
2. clear ``<page>!A1:Z1000``,
3. write the presented grid at ``<page>!A1`` with ``valueInputOption=RAW``.

Every target is attempted; if any of them fails a single
:class:`PublishError` listing the failed ids is raised at the end.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

from tariff_sync.adapters.presenters.rates_presenter import present_sheet_rows
from tariff_sync.application.interfaces.spreadsheet_publisher import SpreadsheetPublisher
from tariff_sync.domain.entities.tariffs import CurrentRate
from tariff_sync.domain.exceptions.tariffs import PublishError
from tariff_sync.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)

CLEAR_RANGE = "A1:Z1000"
WRITE_ANCHOR = "A1"


class SheetsClient(Protocol):
    """Transport surface the publisher depends on."""

    async def sheet_titles(self, spreadsheet_id: str) -> list[str]: ...

    async def add_sheet(self, spreadsheet_id: str, title: str) -> None: ...

    async def clear_values(self, spreadsheet_id: str, a1_range: str) -> None: ...

    async def update_values(
        self, spreadsheet_id: str, a1_range: str, values: Sequence[Sequence[str]]
    ) -> None: ...


class GoogleSheetsPublisher(SpreadsheetPublisher):
    """Publish current rates to every registered spreadsheet."""

    def __init__(
        self,
        *,
        client: SheetsClient,
        spreadsheet_ids: Callable[[], Awaitable[list[str]]],
        page_name: str,
        timezone: str = "Europe/Moscow",
    ) -> None:
        """Initialize the publisher.

        Args:
            client: Sheets transport.
            spreadsheet_ids: Async source of target ids (read per publish).
            page_name: Title of the page that receives the table.
            timezone: IANA zone used to render period dates.
        """
        self._client = client
        self._spreadsheet_ids = spreadsheet_ids
        self._page = page_name
        self._timezone = timezone

    async def publish(self, rates: Sequence[CurrentRate]) -> int:
        try:
            targets = await self._spreadsheet_ids()
        except Exception as exc:
            raise PublishError(
                "targets_unavailable", details={"error": type(exc).__name__}
            ) from exc
        if not targets:
            log.warning("sheets.no_targets")
            return 0

        try:
            values = present_sheet_rows(rates, timezone=self._timezone)
        except (ValueError, LookupError) as exc:
            raise PublishError(
                "render_failed", details={"timezone": self._timezone, "error": str(exc)}
            ) from exc

        failed: dict[str, str] = {}
        for spreadsheet_id in targets:
            try:
                await self._publish_one(spreadsheet_id, values)
            except PublishError as exc:
                failed[spreadsheet_id] = str(exc.details.get("status", exc))
                log.error(
                    "sheets.update_failed",
                    extra={"extra": {"spreadsheet_id": spreadsheet_id, "details": exc.details}},
                )

        if failed:
            raise PublishError(
                "publish_failed",
                details={"failed": failed, "attempted": len(targets)},
            )
        return len(targets)

    async def _publish_one(self, spreadsheet_id: str, values: list[list[str]]) -> None:
        titles = await self._client.sheet_titles(spreadsheet_id)
        if self._page not in titles:
            await self._client.add_sheet(spreadsheet_id, self._page)
            log.info(
                "sheets.page_created",
                extra={"extra": {"spreadsheet_id": spreadsheet_id, "page": self._page}},
            )
        await self._client.clear_values(spreadsheet_id, f"{self._page}!{CLEAR_RANGE}")
        await self._client.update_values(spreadsheet_id, f"{self._page}!{WRITE_ANCHOR}", values)
        log.info(
            "sheets.updated",
            extra={"extra": {"spreadsheet_id": spreadsheet_id, "rows": len(values)}},
        )
