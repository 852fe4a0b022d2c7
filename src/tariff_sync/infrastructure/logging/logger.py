# src/tariff_sync/infrastructure/logging/logger.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce JSON logs suitable for ingestion by log pipelines.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * Automatic enrichment with the current sync ``run_id`` via contextvars.
    * Structured fields passed as ``extra={"extra": {...}}`` are merged into
      the payload.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.info("sync.done", extra={"extra": {"rates_created": 3}})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "set_run_id",
    "get_run_id",
]

# Current sync run correlation id (task-local via contextvars).
_RUN_ID_CTX: ContextVar[str | None] = ContextVar("tariff_sync_run_id", default=None)


def set_run_id(run_id: str | None) -> None:
    """Bind a sync run id to the current context (``None`` clears it)."""
    _RUN_ID_CTX.set(run_id)


def get_run_id() -> str | None:
    """Return the run id bound to the current context, if any."""
    return _RUN_ID_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object.

        Args:
            record: Logging record.

        Returns:
            JSON-encoded log line.
        """
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id: str | None = getattr(record, "run_id", None) or _RUN_ID_CTX.get(None)
        if run_id:
            payload["run_id"] = run_id

        # Exceptions: guard against None in exc_info tuple.
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)
                cause = exc_value.__cause__
                if cause is not None:
                    payload["exc_cause"] = f"{type(cause).__name__}: {cause}"

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    if isinstance(resolved, str):
        resolved = resolved.upper()
    root.setLevel(resolved)

    if root.handlers:
        # Already configured; prevent duplicate handlers.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module-specific logger backed by the JSON root handler.

    This does *not* implicitly configure the root logger. Call
    :func:`configure_root_logging` once at startup.

    Args:
        name: Logger name, typically ``__name__`` of the caller.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger
