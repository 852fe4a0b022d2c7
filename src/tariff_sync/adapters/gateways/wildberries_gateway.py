# src/tariff_sync/adapters/gateways/wildberries_gateway.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: Wildberries box tariffs -> RateSnapshot.

This gateway sits on top of the transport client and maps the provider
payload into the domain snapshot:

* ``dtTillMax`` becomes the snapshot horizon date.
* Each ``warehouseList`` item becomes one :class:`WarehouseRateRecord`; every
  numeric string goes through the single locale-decimal parser.
* Shape problems surface as :class:`UpstreamValidationError`; numeric
  problems as :class:`RateParseError`. Both abort the batch.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, Final, Protocol

from tariff_sync.domain.entities.tariffs import RateSnapshot, WarehouseRateRecord
from tariff_sync.domain.exceptions.tariffs import UpstreamValidationError
from tariff_sync.domain.interfaces.gateways.rates_gateway import RateSnapshotGateway
from tariff_sync.domain.services.rate_parsing import parse_rate_vector
from tariff_sync.infrastructure.logging.logger import get_json_logger

log = get_json_logger(__name__)

#: Canonical rate field -> provider JSON key.
WB_FIELD_MAP: Final[dict[str, str]] = {
    "box_delivery_base": "boxDeliveryBase",
    "box_delivery_coef": "boxDeliveryCoefExpr",
    "box_delivery_liter": "boxDeliveryLiter",
    "box_delivery_marketplace_base": "boxDeliveryMarketplaceBase",
    "box_delivery_marketplace_coef": "boxDeliveryMarketplaceCoefExpr",
    "box_delivery_marketplace_liter": "boxDeliveryMarketplaceLiter",
    "box_storage_base": "boxStorageBase",
    "box_storage_coef": "boxStorageCoefExpr",
    "box_storage_liter": "boxStorageLiter",
}

#: Fixed development payload served when the mock is enabled.
MOCK_BOX_TARIFFS: Final[dict[str, Any]] = {
    "dtNextBox": "2025-10-01",
    "dtTillMax": "2025-09-30",
    "warehouseList": [
        {
            "boxDeliveryBase": "100.50",
            "boxDeliveryCoefExpr": "1.2",
            "boxDeliveryLiter": "15.75",
            "boxDeliveryMarketplaceBase": "120.00",
            "boxDeliveryMarketplaceCoefExpr": "1.3",
            "boxDeliveryMarketplaceLiter": "18.50",
            "boxStorageBase": "5.25",
            "boxStorageCoefExpr": "1.1",
            "boxStorageLiter": "2.75",
            "geoName": "Москва",
            "warehouseName": "Коледино",
        },
        {
            "boxDeliveryBase": "95.00",
            "boxDeliveryCoefExpr": "1.15",
            "boxDeliveryLiter": "14.25",
            "boxDeliveryMarketplaceBase": "115.50",
            "boxDeliveryMarketplaceCoefExpr": "1.25",
            "boxDeliveryMarketplaceLiter": "17.00",
            "boxStorageBase": "4.75",
            "boxStorageCoefExpr": "1.05",
            "boxStorageLiter": "2.50",
            "geoName": "Санкт-Петербург",
            "warehouseName": "Шушары",
        },
    ],
}


class BoxTariffsClient(Protocol):
    """Transport surface the gateway depends on."""

    async def box_tariffs(self, *, as_of: date) -> Mapping[str, Any]:
        raise NotImplementedError


def _parse_date(raw: Any, *, field: str, required: bool) -> date | None:
    if raw in (None, ""):
        if required:
            raise UpstreamValidationError("missing_field", details={"field": field})
        return None
    if not isinstance(raw, str):
        raise UpstreamValidationError("bad_date", details={"field": field, "value": repr(raw)})
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError as exc:
        raise UpstreamValidationError(
            "bad_date", details={"field": field, "value": raw}
        ) from exc


def _map_warehouse(index: int, item: Any) -> WarehouseRateRecord:
    if not isinstance(item, Mapping):
        raise UpstreamValidationError("bad_shape", details={"index": index, "expected": "object"})
    region = item.get("geoName")
    name = item.get("warehouseName")
    if not (isinstance(region, str) and region.strip()) or not (
        isinstance(name, str) and name.strip()
    ):
        raise UpstreamValidationError("missing_warehouse_key", details={"index": index})

    raw = {canonical: item[key] for canonical, key in WB_FIELD_MAP.items() if key in item}
    return WarehouseRateRecord(
        region_name=region.strip(),
        warehouse_name=name.strip(),
        rates=parse_rate_vector(raw),
    )


def snapshot_from_payload(data: Mapping[str, Any]) -> RateSnapshot:
    """Map a provider ``response.data`` object into a :class:`RateSnapshot`."""
    horizon = _parse_date(data.get("dtTillMax"), field="dtTillMax", required=True)
    next_box = _parse_date(data.get("dtNextBox"), field="dtNextBox", required=False)

    items = data.get("warehouseList")
    if not isinstance(items, list):
        raise UpstreamValidationError("bad_shape", details={"expected": "warehouseList:list"})

    records = [_map_warehouse(i, item) for i, item in enumerate(items)]
    if horizon is None:  # pragma: no cover
        raise UpstreamValidationError("missing_field", details={"field": "dtTillMax"})
    try:
        return RateSnapshot(horizon_date=horizon, warehouses=records, next_box_date=next_box)
    except ValueError as exc:
        raise UpstreamValidationError("duplicate_warehouse", details={"error": str(exc)}) from exc


class WildberriesRatesGateway(RateSnapshotGateway):
    """Live gateway backed by the Wildberries transport client."""

    def __init__(self, client: BoxTariffsClient) -> None:
        self._client = client

    async def fetch_snapshot(self, *, as_of: date) -> RateSnapshot:
        data = await self._client.box_tariffs(as_of=as_of)
        snapshot = snapshot_from_payload(data)
        log.info(
            "wildberries.snapshot",
            extra={
                "extra": {
                    "as_of": as_of.isoformat(),
                    "warehouses": len(snapshot.warehouses),
                    "horizon_date": snapshot.horizon_date.isoformat(),
                }
            },
        )
        return snapshot


class MockRatesGateway(RateSnapshotGateway):
    """Development gateway serving :data:`MOCK_BOX_TARIFFS`."""

    def __init__(self, payload: Mapping[str, Any] | None = None) -> None:
        self._payload = payload if payload is not None else MOCK_BOX_TARIFFS

    async def fetch_snapshot(self, *, as_of: date) -> RateSnapshot:
        log.warning("wildberries.mock_snapshot", extra={"extra": {"as_of": as_of.isoformat()}})
        return snapshot_from_payload(self._payload)
