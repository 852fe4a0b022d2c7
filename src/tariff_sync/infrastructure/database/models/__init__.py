"""ORM models; importing this package registers every table on ``metadata``."""

from tariff_sync.infrastructure.database.models.base import Base, metadata
from tariff_sync.infrastructure.database.models.tariffs import (
    BoxRateRow,
    SpreadsheetRow,
    TariffPeriodRow,
    WarehouseRow,
)

__all__ = [
    "Base",
    "metadata",
    "WarehouseRow",
    "TariffPeriodRow",
    "BoxRateRow",
    "SpreadsheetRow",
]
