# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Base Entity (Domain Layer).

Purpose:
    Mixin for immutable domain entities. Provides frozen dataclass semantics
    and a small validation hook for invariants.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BaseEntity:
    """Base mixin for domain entities.

    Concrete entities subclass this mixin, declare their own fields and may
    override :meth:`__post_init__` to enforce invariants.
    """

    def __post_init__(self) -> None:  # noqa: D401
        """Hook for subclasses to extend with invariant checks."""
        return
