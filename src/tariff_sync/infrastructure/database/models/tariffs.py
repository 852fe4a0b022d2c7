# src/tariff_sync/infrastructure/database/models/tariffs.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Tariff history models: warehouses, tariff periods, box rates, spreadsheets.

Schema notes:
    * ``warehouses`` is keyed naturally by ``(geo_name, warehouse_name)``.
    * ``tariff_periods`` are half-open ``[start_date, end_date)``; a null
      ``end_date`` is an open period.
    * ``box_rates`` binds one rate vector to one ``(warehouse, period)`` pair;
      deleting either parent cascades.
    * Rate components are ``NUMERIC(10, 2)``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from tariff_sync.infrastructure.database.models.base import (
    Base,
    IdentityMixin,
    TimestampMixin,
)

RATE_NUMERIC = Numeric(10, 2)


class WarehouseRow(IdentityMixin, TimestampMixin, Base):
    """Warehouse registry."""

    __tablename__ = "warehouses"
    __table_args__ = (UniqueConstraint("geo_name", "warehouse_name"),)

    geo_name: Mapped[str] = mapped_column(String(255), nullable=False)
    warehouse_name: Mapped[str] = mapped_column(String(255), nullable=False)


class TariffPeriodRow(IdentityMixin, TimestampMixin, Base):
    """Validity interval shared by the rates created in one batch."""

    __tablename__ = "tariff_periods"
    __table_args__ = (Index("ix_tariff_periods_start_end", "start_date", "end_date"),)

    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BoxRateRow(IdentityMixin, TimestampMixin, Base):
    """Box rate vector for one warehouse within one tariff period."""

    __tablename__ = "box_rates"
    __table_args__ = (
        UniqueConstraint("warehouse_id", "tariff_period_id"),
        Index("ix_box_rates_tariff_period_id", "tariff_period_id"),
    )

    warehouse_id: Mapped[UUID] = mapped_column(
        ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False
    )
    tariff_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("tariff_periods.id", ondelete="CASCADE"), nullable=False
    )

    box_delivery_base: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_delivery_coef: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_delivery_liter: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_delivery_marketplace_base: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_delivery_marketplace_coef: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_delivery_marketplace_liter: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_storage_base: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_storage_coef: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)
    box_storage_liter: Mapped[Decimal] = mapped_column(RATE_NUMERIC, nullable=False)


class SpreadsheetRow(IdentityMixin, TimestampMixin, Base):
    """Publish target spreadsheet."""

    __tablename__ = "spreadsheets"

    spreadsheet_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
