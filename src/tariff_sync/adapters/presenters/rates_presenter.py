# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Presenters for the current-rates projection.

Purpose:
    Shape :class:`CurrentRate` rows for the two outward surfaces:

    * spreadsheet values (header row + one string row per rate), and
    * JSON-ready dicts for the ``current`` CLI command.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Final
from zoneinfo import ZoneInfo

from tariff_sync.domain.entities.tariffs import RATE_FIELDS, CurrentRate

SHEET_HEADER: Final[tuple[str, ...]] = (
    "Region",
    "Warehouse",
    "Start date",
    "End date",
    "Delivery base",
    "Delivery coef",
    "Delivery liter",
    "Marketplace base",
    "Marketplace coef",
    "Marketplace liter",
    "Storage base",
    "Storage coef",
    "Storage liter",
)
EMPTY_SHEET_MESSAGE: Final[str] = "No current rates"
UNBOUNDED_END: Final[str] = "-"

_CENTS = Decimal("0.01")


def format_sheet_date(value: datetime | None, tz: ZoneInfo) -> str:
    """Render ``DD.MM.YYYY HH:MM`` in ``tz``; ``None`` renders as ``-``."""
    if value is None:
        return UNBOUNDED_END
    return value.astimezone(tz).strftime("%d.%m.%Y %H:%M")


def format_rate(value: Decimal) -> str:
    """Render a rate with exactly two decimals."""
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def present_sheet_rows(
    rates: Sequence[CurrentRate],
    *,
    timezone: str = "Europe/Moscow",
) -> list[list[str]]:
    """Return the value grid written to the spreadsheet page."""
    if not rates:
        return [[EMPTY_SHEET_MESSAGE]]

    tz = ZoneInfo(timezone)
    rows: list[list[str]] = [list(SHEET_HEADER)]
    for rate in rates:
        rows.append(
            [
                rate.region_name,
                rate.warehouse_name,
                format_sheet_date(rate.start_date, tz),
                format_sheet_date(rate.end_date, tz),
                *(format_rate(value) for _, value in rate.rates.items()),
            ]
        )
    return rows


def present_json(rates: Sequence[CurrentRate]) -> list[dict[str, Any]]:
    """Return JSON-serializable dicts; decimals as strings, dates as ISO-8601."""
    out: list[dict[str, Any]] = []
    for rate in rates:
        item: dict[str, Any] = {
            "region_name": rate.region_name,
            "warehouse_name": rate.warehouse_name,
            "start_date": rate.start_date.isoformat(),
            "end_date": rate.end_date.isoformat() if rate.end_date is not None else None,
        }
        values = rate.rates.as_dict()
        item.update({name: format_rate(values[name]) for name in RATE_FIELDS})
        out.append(item)
    return out
