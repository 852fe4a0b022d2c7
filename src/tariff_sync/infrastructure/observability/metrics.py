# src/tariff_sync/infrastructure/observability/metrics.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Prometheus metrics for rate synchronization.

Exports
-------
Collectors (names are part of the public contract and must remain stable):

* ``tariff_sync_runs_total`` (Counter, label ``outcome``)
* ``tariff_sync_run_duration_seconds`` (Histogram)
* ``tariff_sync_periods_created_total`` (Counter)
* ``tariff_sync_rates_created_total`` (Counter)
* ``tariff_sync_upstream_requests_total`` (Counter, labels ``provider``, ``status_code``)
* ``tariff_sync_upstream_retries_total`` (Counter, labels ``provider``, ``reason``)
* ``tariff_sync_publish_total`` (Counter, label ``outcome``)

Design
------
All collectors are created against the *current* default registry
(:data:`prometheus_client.REGISTRY`). If a collector with the same name is
already registered (module re-import in tests), the existing instance is
reused instead of registering a duplicate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import prometheus_client as prom
from prometheus_client import Counter, Histogram
from prometheus_client.registry import CollectorRegistry


def _existing(name: str) -> Any:
    registry: CollectorRegistry = prom.REGISTRY
    mapping = getattr(registry, "_names_to_collectors", {})  # internal but stable
    return mapping.get(name)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Histogram:
    """Return a histogram bound to the current default registry (idempotent)."""
    existing = _existing(name)
    if isinstance(existing, Histogram):
        return existing
    try:
        return Histogram(name, doc, tuple(labelnames or ()), registry=prom.REGISTRY)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = _existing(name)
            if isinstance(again, Histogram):
                return again
        raise


def _get_or_create_counter(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Counter:
    """Return a counter bound to the current default registry (idempotent).

    Counters are looked up by their base name; ``prometheus_client`` also
    registers the ``_total``/``_created`` aliases, so both are checked.
    """
    for key in (name, name.removesuffix("_total")):
        existing = _existing(key)
        if isinstance(existing, Counter):
            return existing
    try:
        return Counter(name, doc, tuple(labelnames or ()), registry=prom.REGISTRY)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = _existing(name)
            if isinstance(again, Counter):
                return again
        raise


sync_runs_total: Counter = _get_or_create_counter(
    "tariff_sync_runs_total",
    "Synchronization runs by outcome.",
    labelnames=("outcome",),
)

sync_run_duration_seconds: Histogram = _get_or_create_histogram(
    "tariff_sync_run_duration_seconds",
    "Wall time of one synchronization run (seconds).",
)

periods_created_total: Counter = _get_or_create_counter(
    "tariff_sync_periods_created_total",
    "Tariff periods created by reconciliation.",
)

rates_created_total: Counter = _get_or_create_counter(
    "tariff_sync_rates_created_total",
    "Box rate rows created by reconciliation.",
)

upstream_requests_total: Counter = _get_or_create_counter(
    "tariff_sync_upstream_requests_total",
    "HTTP responses returned by upstream providers.",
    labelnames=("provider", "status_code"),
)

upstream_retries_total: Counter = _get_or_create_counter(
    "tariff_sync_upstream_retries_total",
    "Retries attempted for upstream requests.",
    labelnames=("provider", "reason"),
)

publish_total: Counter = _get_or_create_counter(
    "tariff_sync_publish_total",
    "Spreadsheet publish attempts by outcome.",
    labelnames=("outcome",),
)


def start_metrics_server(port: int) -> None:
    """Expose the default registry over HTTP on ``port``."""
    prom.start_http_server(port)
