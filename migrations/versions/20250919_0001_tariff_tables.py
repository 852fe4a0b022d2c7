"""Tariff history tables: warehouses, tariff_periods, box_rates, spreadsheets.

Revision ID: 20250919_0001
Revises:
Create Date: 2025-09-19

This migration:
  * Creates ``warehouses`` keyed naturally by (geo_name, warehouse_name).
  * Creates ``tariff_periods`` (half-open [start_date, end_date), timestamptz).
  * Creates ``box_rates`` binding one NUMERIC(10,2) rate vector to one
    (warehouse, period) pair, cascading on parent delete.
  * Creates ``spreadsheets`` (publish targets).

Notes:
  - UUID defaults use ``gen_random_uuid()`` (PostgreSQL 13+ core).
  - Constraint names follow the metadata naming conventions.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20250919_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

SCHEMA = os.getenv("DB_SCHEMA", "public") or "public"

RATE_COLUMNS = (
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


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        sa.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Apply the migration."""
    op.execute(sa.text(f'CREATE SCHEMA IF NOT EXISTS "{SCHEMA}"'))

    op.create_table(
        "warehouses",
        _id_column(),
        sa.Column("geo_name", sa.String(255), nullable=False),
        sa.Column("warehouse_name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_warehouses"),
        sa.UniqueConstraint(
            "geo_name", "warehouse_name", name="uq_warehouses_geo_name_warehouse_name"
        ),
        schema=SCHEMA,
    )

    op.create_table(
        "tariff_periods",
        _id_column(),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tariff_periods"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_tariff_periods_start_end",
        "tariff_periods",
        ["start_date", "end_date"],
        schema=SCHEMA,
    )

    op.create_table(
        "box_rates",
        _id_column(),
        sa.Column("warehouse_id", sa.UUID(as_uuid=True), nullable=False),
        sa.Column("tariff_period_id", sa.UUID(as_uuid=True), nullable=False),
        *(sa.Column(name, sa.Numeric(10, 2), nullable=False) for name in RATE_COLUMNS),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_box_rates"),
        sa.ForeignKeyConstraint(
            ["warehouse_id"],
            [f"{SCHEMA}.warehouses.id"],
            name="fk_box_rates_warehouse_id_warehouses",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tariff_period_id"],
            [f"{SCHEMA}.tariff_periods.id"],
            name="fk_box_rates_tariff_period_id_tariff_periods",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "warehouse_id",
            "tariff_period_id",
            name="uq_box_rates_warehouse_id_tariff_period_id",
        ),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_box_rates_tariff_period_id",
        "box_rates",
        ["tariff_period_id"],
        schema=SCHEMA,
    )

    op.create_table(
        "spreadsheets",
        _id_column(),
        sa.Column("spreadsheet_id", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_spreadsheets"),
        sa.UniqueConstraint("spreadsheet_id", name="uq_spreadsheets_spreadsheet_id"),
        schema=SCHEMA,
    )


def downgrade() -> None:
    """Revert the migration."""
    op.drop_table("spreadsheets", schema=SCHEMA)
    op.drop_index("ix_box_rates_tariff_period_id", table_name="box_rates", schema=SCHEMA)
    op.drop_table("box_rates", schema=SCHEMA)
    op.drop_index("ix_tariff_periods_start_end", table_name="tariff_periods", schema=SCHEMA)
    op.drop_table("tariff_periods", schema=SCHEMA)
    op.drop_table("warehouses", schema=SCHEMA)
