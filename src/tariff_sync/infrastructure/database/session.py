# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Async SQLAlchemy engine/session factory.

This module owns the process-global async SQLAlchemy engine and
`async_sessionmaker`.

Lifecycle:
    * Call `init_engine_and_sessionmaker(settings)` once from the CLI entry.
    * Hand `get_sessionmaker()` to the Unit-of-Work factory.
    * Call `dispose_engine()` before the event loop closes.

Notes:
    * No business logic here; repositories consume the session.
    * `pool_pre_ping=True` surfaces dead connections before use; the worker
      sleeps for long intervals between runs.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tariff_sync.config.settings import Settings

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def init_engine_and_sessionmaker(settings: Settings) -> None:
    """Initialize the global async engine and sessionmaker (idempotent).

    Args:
        settings: Application settings providing `database_url`.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        return

    _engine = create_async_engine(
        url=settings.database_url,
        pool_pre_ping=True,
        echo=False,
    )
    _sessionmaker = async_sessionmaker(bind=_engine, expire_on_commit=False, class_=AsyncSession)


async def dispose_engine() -> None:
    """Dispose the global engine."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the initialized async sessionmaker.

    Raises:
        RuntimeError: If the sessionmaker is not yet initialized.
    """
    if _sessionmaker is None:
        raise RuntimeError("DB sessionmaker not initialized (call init_engine_and_sessionmaker)")
    return _sessionmaker

