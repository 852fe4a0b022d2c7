# tests/unit/domain/entities/test_tariff_entities.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from tariff_sync.domain.entities.tariffs import (
    RATE_FIELDS,
    RateSnapshot,
    RateVector,
    TariffPeriod,
    WarehouseRateRecord,
)


def _vector() -> RateVector:
    return RateVector(**{name: Decimal("1") for name in RATE_FIELDS})


def test_rate_vector_rejects_floats() -> None:
    values: dict[str, object] = {name: Decimal("1") for name in RATE_FIELDS}
    values["box_storage_base"] = 1.0
    with pytest.raises(TypeError):
        RateVector(**values)  # type: ignore[arg-type]


def test_rate_vector_items_follow_canonical_order() -> None:
    assert [name for name, _ in _vector().items()] == list(RATE_FIELDS)
    assert set(_vector().as_dict()) == set(RATE_FIELDS)


def test_record_requires_non_empty_names() -> None:
    with pytest.raises(ValueError):
        WarehouseRateRecord(region_name=" ", warehouse_name="W", rates=_vector())


def test_snapshot_rejects_duplicate_warehouses() -> None:
    record = WarehouseRateRecord(region_name="A", warehouse_name="W", rates=_vector())
    with pytest.raises(ValueError, match="duplicate"):
        RateSnapshot(horizon_date=date(2025, 9, 30), warehouses=[record, record])


def test_same_warehouse_name_in_other_region_is_distinct() -> None:
    snapshot = RateSnapshot(
        horizon_date=date(2025, 9, 30),
        warehouses=[
            WarehouseRateRecord(region_name="A", warehouse_name="W", rates=_vector()),
            WarehouseRateRecord(region_name="B", warehouse_name="W", rates=_vector()),
        ],
    )
    assert len(snapshot.warehouses) == 2


def test_tariff_period_requires_aware_datetimes() -> None:
    with pytest.raises(ValueError):
        TariffPeriod(id=uuid4(), start=datetime(2025, 9, 1), end=None)
