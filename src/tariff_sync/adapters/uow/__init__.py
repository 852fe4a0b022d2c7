"""Unit-of-Work adapters."""

from tariff_sync.adapters.uow.sqlalchemy_uow import SqlAlchemyUnitOfWork

__all__ = ["SqlAlchemyUnitOfWork"]
