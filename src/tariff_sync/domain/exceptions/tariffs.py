# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""
Tariff Domain Exceptions

Purpose:
    Error taxonomy for one synchronization run:

    * upstream fetch failures (fatal to the batch, nothing reconciled),
    * malformed numeric input (fatal to the batch),
    * data-integrity anomalies detected while locating periods,
    * reconciliation failures (the batch transaction was rolled back),
    * publishing failures (reconciliation results persist).

Layer: domain/exceptions
"""
from __future__ import annotations

from .base import DomainError


class UpstreamUnavailable(DomainError):
    """Rate provider is unreachable, throttling, or failing with 5xx."""

    code = "UPSTREAM_UNAVAILABLE"


class UpstreamAuthError(DomainError):
    """Rate provider rejected our credentials (401/403)."""

    code = "UPSTREAM_AUTH_ERROR"


class UpstreamValidationError(DomainError):
    """Rate provider returned an unexpected/invalid payload."""

    code = "UPSTREAM_SCHEMA_ERROR"


class RateParseError(DomainError):
    """A locale-formatted decimal string could not be normalized."""

    code = "RATE_PARSE_ERROR"


class PeriodIntegrityError(DomainError):
    """More than one tariff period is active for a warehouse at one instant."""

    code = "PERIOD_INTEGRITY_ERROR"


class ReconciliationFailed(DomainError):
    """The batch transaction failed and was rolled back in full."""

    code = "RECONCILIATION_FAILED"


class PublishError(DomainError):
    """Pushing current rates to a spreadsheet failed."""

    code = "PUBLISH_ERROR"
