# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Tariff domain entities.

Purpose:
    Immutable value objects for the box-rate history:

    * :class:`RateVector` - the nine numeric rate components of one warehouse.
    * :class:`WarehouseRateRecord` / :class:`RateSnapshot` - one parsed
      upstream batch sharing a single horizon date.
    * :class:`TariffPeriod`, :class:`BoxRate` - persisted rows as seen by the
      domain; warehouses are referenced by id only.
    * :class:`CurrentRate` - read-side projection used for publishing.
    * :class:`ReconcileSummary` - per-run counters.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from tariff_sync.domain.entities.base import BaseEntity

#: Canonical order of the rate components (persistence columns share these names).
RATE_FIELDS: tuple[str, ...] = (
    "box_delivery_base",
    "box_delivery_coef",
    "box_delivery_liter",
    "box_delivery_marketplace_base",
    "box_delivery_marketplace_coef",
    "box_delivery_marketplace_liter",
    "box_storage_base",
    "box_storage_coef",
    "box_storage_liter",
)


@dataclass(frozen=True, slots=True)
class RateVector(BaseEntity):
    """Nine-component box rate vector.

    Attributes:
        box_delivery_base: Delivery, first liter.
        box_delivery_coef: Delivery coefficient.
        box_delivery_liter: Delivery, each additional liter.
        box_delivery_marketplace_base: Marketplace (FBS) delivery, first liter.
        box_delivery_marketplace_coef: Marketplace delivery coefficient.
        box_delivery_marketplace_liter: Marketplace delivery, each additional liter.
        box_storage_base: Storage per day, first liter.
        box_storage_coef: Storage coefficient.
        box_storage_liter: Storage per day, each additional liter.
    """

    box_delivery_base: Decimal
    box_delivery_coef: Decimal
    box_delivery_liter: Decimal
    box_delivery_marketplace_base: Decimal
    box_delivery_marketplace_coef: Decimal
    box_delivery_marketplace_liter: Decimal
    box_storage_base: Decimal
    box_storage_coef: Decimal
    box_storage_liter: Decimal

    def __post_init__(self) -> None:
        for f in fields(self):
            if not isinstance(getattr(self, f.name), Decimal):
                raise TypeError(f"{f.name} must be a Decimal")

    def items(self) -> Iterator[tuple[str, Decimal]]:
        """Yield ``(field_name, value)`` pairs in canonical order."""
        for name in RATE_FIELDS:
            yield name, getattr(self, name)

    def as_dict(self) -> dict[str, Decimal]:
        """Return the vector as a plain mapping keyed by field name."""
        return dict(self.items())


@dataclass(frozen=True, slots=True)
class WarehouseRateRecord(BaseEntity):
    """One warehouse line of an upstream snapshot."""

    region_name: str
    warehouse_name: str
    rates: RateVector

    def __post_init__(self) -> None:
        if not self.region_name.strip() or not self.warehouse_name.strip():
            raise ValueError("region_name and warehouse_name must be non-empty")


@dataclass(frozen=True, slots=True)
class RateSnapshot(BaseEntity):
    """One fetched batch of rates sharing a single horizon date.

    Attributes:
        horizon_date: Furthest date for which the upstream guarantees the rates.
        warehouses: Per-warehouse rate records, in upstream order.
        next_box_date: Upstream announcement of the next tariff start, if any.
    """

    horizon_date: date
    warehouses: Sequence[WarehouseRateRecord]
    next_box_date: date | None = None

    def __post_init__(self) -> None:
        seen: set[tuple[str, str]] = set()
        for record in self.warehouses:
            key = (record.region_name, record.warehouse_name)
            if key in seen:
                raise ValueError(f"duplicate warehouse in snapshot: {key[0]} / {key[1]}")
            seen.add(key)


@dataclass(frozen=True, slots=True)
class TariffPeriod(BaseEntity):
    """Half-open interval ``[start, end)``; ``end=None`` means still open."""

    id: UUID
    start: datetime
    end: datetime | None

    def __post_init__(self) -> None:
        if self.start.tzinfo is None:
            raise ValueError("TariffPeriod.start must be timezone-aware")
        if self.end is not None and self.end.tzinfo is None:
            raise ValueError("TariffPeriod.end must be timezone-aware")

    def is_active_at(self, instant: datetime) -> bool:
        """Return True if the period covers ``instant`` (end bound inclusive)."""
        return self.start <= instant and (self.end is None or self.end >= instant)


@dataclass(frozen=True, slots=True)
class BoxRate(BaseEntity):
    """Rate vector bound to exactly one ``(warehouse, period)`` pair."""

    id: UUID
    warehouse_id: UUID
    tariff_period_id: UUID
    rates: RateVector


@dataclass(frozen=True, slots=True)
class CurrentRate(BaseEntity):
    """Read-side projection row: warehouse + active period + rates."""

    region_name: str
    warehouse_name: str
    start_date: datetime
    end_date: datetime | None
    rates: RateVector


@dataclass(frozen=True, slots=True)
class ReconcileSummary(BaseEntity):
    """Counters for one reconciliation batch.

    ``periods_created`` and ``rates_created`` count only rows inserted by the
    run; ``warehouses_seen`` counts every warehouse in the snapshot.
    """

    periods_created: int = 0
    warehouses_seen: int = 0
    rates_created: int = 0
