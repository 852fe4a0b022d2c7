# src/tariff_sync/domain/services/rate_comparator.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Rate comparator (domain kernel).

Purpose:
    Decide whether an incoming rate vector continues the stored one. Two
    vectors match when every component differs by at most
    :data:`RATE_TOLERANCE`; a difference of exactly the tolerance is still a
    match.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no persistence.
    - The tolerance is a fixed policy constant; it absorbs rounding noise from
      the upstream string-to-number conversion and the NUMERIC(10, 2) storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from tariff_sync.domain.entities.tariffs import RATE_FIELDS, RateVector

RATE_TOLERANCE: Final[Decimal] = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class RateMismatch:
    """First component found outside tolerance."""

    field: str
    existing: Decimal
    incoming: Decimal

    @property
    def delta(self) -> Decimal:
        """Absolute difference between the two values."""
        return abs(self.existing - self.incoming)


def first_mismatch(existing: RateVector, incoming: RateVector) -> RateMismatch | None:
    """Return the first component whose difference exceeds the tolerance.

    Args:
        existing: Vector currently bound to the active period.
        incoming: Vector observed in the new snapshot.

    Returns:
        The first :class:`RateMismatch` in canonical field order, or ``None``
        when all nine components match.
    """
    for name in RATE_FIELDS:
        old = getattr(existing, name)
        new = getattr(incoming, name)
        if abs(old - new) > RATE_TOLERANCE:
            return RateMismatch(field=name, existing=old, incoming=new)
    return None


def rates_match(existing: RateVector, incoming: RateVector) -> bool:
    """Return True iff all nine components match within :data:`RATE_TOLERANCE`."""
    return first_mismatch(existing, incoming) is None
