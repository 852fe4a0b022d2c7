# src/tariff_sync/adapters/repositories/base_repository.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""
BaseRepository: shared repository foundation.

Purpose:
    Shared mechanics for all repositories:
      * Safe fetch helpers (one, optional, all).
      * UTC timestamp helper for audit fields.

Layer: adapters / repositories

Notes:
    * No business logic, no domain decisions.
    * Repositories never commit; the Unit of Work owns transactions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

TModel = TypeVar("TModel")


class BaseRepository(Generic[TModel]):  # noqa: UP046
    """Abstract base class for all repositories."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session bound to the target database.
        """
        self._session: AsyncSession = session

    @staticmethod
    def utc_now() -> datetime:
        """Return current UTC time with timezone info."""
        return datetime.now(UTC)

    async def fetch_one(self, stmt: Select[Any]) -> TModel:
        """Execute a statement and return a single row or raise."""
        res = await self._session.execute(stmt)
        return res.scalars().one()

    async def fetch_optional(self, stmt: Select[Any]) -> TModel | None:
        """Execute a statement and return zero or one row."""
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def fetch_all(self, stmt: Select[Any]) -> list[TModel]:
        """Execute a statement and return all rows as a list."""
        res = await self._session.execute(stmt)
        return list(res.scalars().all())
