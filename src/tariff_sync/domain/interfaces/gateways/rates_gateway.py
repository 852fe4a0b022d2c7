# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Gateway port for the upstream rate snapshot source.

Layer:
    domain/interfaces/gateways
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from tariff_sync.domain.entities.tariffs import RateSnapshot


class RateSnapshotGateway(Protocol):
    """Fetch one parsed snapshot of per-warehouse box rates."""

    async def fetch_snapshot(self, *, as_of: date) -> RateSnapshot:
        """Return the snapshot published for ``as_of``.

        Raises:
            UpstreamUnavailable: Transport failures, throttling or 5xx.
            UpstreamAuthError: Credentials rejected.
            UpstreamValidationError: Payload shape is not as expected.
            RateParseError: A numeric field could not be normalized.
        """
        raise NotImplementedError
