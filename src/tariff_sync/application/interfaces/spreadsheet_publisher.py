# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Application Port: spreadsheet publisher.

The publisher receives the current-rates projection and pushes it to every
registered spreadsheet. Implementations raise
:class:`~tariff_sync.domain.exceptions.tariffs.PublishError` on failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from tariff_sync.domain.entities.tariffs import CurrentRate


class SpreadsheetPublisher(Protocol):
    """Protocol for publishing current rates to remote spreadsheets."""

    async def publish(self, rates: Sequence[CurrentRate]) -> int:
        """Publish ``rates``; return the number of spreadsheets updated."""
        raise NotImplementedError
