# migrations/env.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Alembic Environment (migrations/env.py)

Purpose:
    Configure Alembic for the tariff tables with deterministic behavior
    across offline and online (async) migration runs.

Design:
    - Loads env vars from .env + .env.<ENVIRONMENT> (without overriding exported vars).
    - Loads the database URL from environment variables or alembic.ini.
    - Refuses to run if ENVIRONMENT is missing (prevents "wrong DB" mistakes).
    - Uses the project Declarative Base for autogenerate (`target_metadata`).
    - Stores the Alembic version table in the configured schema.
    - Emits masked connection information to the log (no credentials).

Environment variables:
    ENVIRONMENT                 Required (e.g. "development", "test", "production").
    DATABASE_URL                Database URL (async driver, e.g. postgresql+asyncpg).
    DB_SCHEMA                   Target schema (default "public").
    ECHO_SQL                    If "1", enable SQL echo in online runs.
    ALEMBIC_SHOW_URL            If "1", log masked URL during runs.

Usage:
    ENVIRONMENT=development alembic upgrade head
    ENVIRONMENT=development alembic upgrade head --sql
"""

from __future__ import annotations

import asyncio
import logging
import logging.config
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse, urlunparse

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def _load_env_files() -> None:
    """Load .env and .env.<ENVIRONMENT> from repo root (no override).

    Precedence:
      1) already-exported env vars (never overwritten)
      2) .env.<ENVIRONMENT>
      3) .env
    """
    root = Path(__file__).resolve().parents[1]

    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if env:
        env_file = root / f".env.{env}"
        if env_file.exists():
            load_dotenv(env_file, override=False)

    base = root / ".env"
    if base.exists():
        load_dotenv(base, override=False)


# Models read DB_SCHEMA at import time, so env files load first.
_load_env_files()

from tariff_sync.infrastructure.database.models import metadata as BaseMetadata  # noqa: E402

config = context.config

if config.config_file_name is not None:
    logging.config.fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

_VERSION_TABLE = "alembic_version"
_VERSION_TABLE_SCHEMA = BaseMetadata.schema or "public"

# Alembic's target metadata used for autogenerate.
target_metadata = BaseMetadata


def _xargs() -> Mapping[str, str]:
    """Return Alembic -x key=value arguments as a mapping."""
    return dict(getattr(config, "x", {}) or {})


def _mask_url(url: str) -> str:
    """Return a masked representation of a database URL for safe logging."""
    parts = urlparse(url)
    user = parts.username or ""
    host = parts.hostname or ""
    port = f":{parts.port}" if parts.port else ""
    auth = f"{user}:****@" if user else ""
    return urlunparse((parts.scheme, f"{auth}{host}{port}", parts.path or "", "", "", ""))


def _get_db_url() -> str:
    """Resolve the database URL from `DATABASE_URL` or alembic.ini.

    Raises:
        RuntimeError: If no database URL can be resolved.
    """
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return ini_url

    raise RuntimeError("Database URL not configured (DATABASE_URL/sqlalchemy.url).")


def _require_environment() -> str:
    """Require ENVIRONMENT to be set to prevent accidental migrations."""
    env = (os.getenv("ENVIRONMENT") or "").strip().lower()
    if not env:
        raise RuntimeError(
            "ENVIRONMENT is required for migrations (e.g., ENVIRONMENT=development). "
            "Refusing to run without an explicit environment."
        )
    return env


def _maybe_log_url(url: str) -> None:
    if _xargs().get("show_url") == "1" or os.getenv("ALEMBIC_SHOW_URL") == "1":
        logger.info("Using DATABASE_URL (masked): %s", _mask_url(url))


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (SQL script output)."""
    _require_environment()
    url = _get_db_url()
    _maybe_log_url(url)

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
        include_schemas=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_VERSION_TABLE_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


def _online_engine_kwargs() -> dict[str, Any]:
    """Return keyword arguments for creating an async engine."""
    echo_sql = (os.getenv("ECHO_SQL") == "1") or (
        (config.get_main_option("echo_sql") or "").strip().lower() == "true"
    )
    return {"echo": echo_sql, "poolclass": pool.NullPool}


def _configure_and_run(connection: Connection) -> None:
    """Configure Alembic context with a live connection and run migrations."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        include_schemas=True,
        version_table=_VERSION_TABLE,
        version_table_schema=_VERSION_TABLE_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


async def _run_migrations_async() -> None:
    """Run migrations in 'online' mode using an async engine."""
    _require_environment()
    url = _get_db_url()
    _maybe_log_url(url)

    connectable: AsyncEngine = create_async_engine(url, **_online_engine_kwargs())
    async with connectable.connect() as connection:
        await connection.run_sync(_configure_and_run)
    await connectable.dispose()


def run_migrations_online() -> None:
    """Entry point used by Alembic for online migrations (async safe)."""
    asyncio.run(_run_migrations_async())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
