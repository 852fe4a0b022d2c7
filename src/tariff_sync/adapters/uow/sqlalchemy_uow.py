# src/tariff_sync/adapters/uow/sqlalchemy_uow.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""SQLAlchemy-backed Unit of Work implementation.

Purpose:
    Provide a concrete implementation of the application-layer UnitOfWork
    protocol using SQLAlchemy's AsyncSession. One reconciliation batch runs
    inside one UoW, so every repository it touches shares one transaction.

Layer:
    adapters/uow
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tariff_sync.adapters.repositories.box_rates_repository import SqlAlchemyBoxRatesRepository
from tariff_sync.adapters.repositories.spreadsheets_repository import (
    SqlAlchemySpreadsheetsRepository,
)
from tariff_sync.adapters.repositories.tariff_periods_repository import (
    SqlAlchemyTariffPeriodsRepository,
)
from tariff_sync.adapters.repositories.warehouses_repository import (
    SqlAlchemyWarehousesRepository,
)
from tariff_sync.application.uow import UnitOfWork
from tariff_sync.domain.interfaces.repositories.tariff_repositories import (
    BoxRatesRepository,
    SpreadsheetsRepository,
    TariffPeriodsRepository,
    WarehousesRepository,
)

RepoFactory = Callable[[AsyncSession], Any]

DEFAULT_REPO_FACTORIES: dict[type[Any], RepoFactory] = {
    WarehousesRepository: SqlAlchemyWarehousesRepository,
    TariffPeriodsRepository: SqlAlchemyTariffPeriodsRepository,
    BoxRatesRepository: SqlAlchemyBoxRatesRepository,
    SpreadsheetsRepository: SqlAlchemySpreadsheetsRepository,
}


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-based UnitOfWork implementation.

    Coordinates a single AsyncSession and a set of repositories within a
    transactional context. Intended to be used via:

        async with SqlAlchemyUnitOfWork(session_factory=sm) as uow:
            repo = uow.get_repository(BoxRatesRepository)
            ...
            await uow.commit()
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        repo_factories: Mapping[type[Any], RepoFactory] | None = None,
    ) -> None:
        """Initialize the UnitOfWork.

        Args:
            session_factory: Factory for creating new AsyncSession instances.
            repo_factories: Optional overrides mapping a repository protocol
                (or concrete type) to a factory taking an AsyncSession.
        """
        self._session_factory = session_factory
        self._session: AsyncSession | None = None
        self._repo_factories: dict[type[Any], RepoFactory] = {
            **DEFAULT_REPO_FACTORIES,
            **(dict(repo_factories) if repo_factories is not None else {}),
        }
        self._repos: dict[type[Any], Any] = {}
        self._committed = False
        self._rolled_back = False

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        """Open a new AsyncSession.

        Raises:
            RuntimeError: If a session is already active (nested usage).
        """
        if self._session is not None:
            raise RuntimeError("UnitOfWork is already active; nested usage is not supported.")

        self._session = self._session_factory()
        self._committed = False
        self._rolled_back = False
        self._repos.clear()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        """Roll back on error if not already done, then close the session."""
        try:
            if exc_type is not None and not self._rolled_back:
                await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None
            self._repos.clear()
        return None

    async def commit(self) -> None:
        """Commit the current transaction (no-op once committed or rolled back).

        Raises:
            RuntimeError: If called without an active session.
        """
        if self._session is None:
            raise RuntimeError("Cannot commit: UnitOfWork has no active session.")
        if self._committed or self._rolled_back:
            return
        await self._session.commit()
        self._committed = True

    async def rollback(self) -> None:
        """Roll back the current transaction (no-op when nothing is active)."""
        if self._session is None or self._rolled_back or self._committed:
            return
        await self._session.rollback()
        self._rolled_back = True

    def get_repository(self, repo_type: type[Any]) -> Any:
        """Return the repository registered for ``repo_type``, cached per scope.

        Raises:
            RuntimeError: If called outside of an active UnitOfWork context.
            KeyError: If no factory is registered for the given repo_type.
        """
        if self._session is None:
            raise RuntimeError(
                "get_repository() called outside of an active UnitOfWork scope. "
                "Use 'async with uow:' before requesting repositories.",
            )

        if repo_type in self._repos:
            return self._repos[repo_type]

        try:
            factory = self._repo_factories[repo_type]
        except KeyError as exc:
            raise KeyError(f"No repository factory registered for type {repo_type!r}.") from exc

        repo = factory(self._session)
        self._repos[repo_type] = repo
        return repo


def make_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SqlAlchemyUnitOfWork]:
    """Return a zero-arg factory producing a fresh UoW per call."""

    def _factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(session_factory=session_factory)

    return _factory
