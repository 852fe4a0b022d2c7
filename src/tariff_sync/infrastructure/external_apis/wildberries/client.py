# src/tariff_sync/infrastructure/external_apis/wildberries/client.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Wildberries Tariffs Transport Client (async, bounded retries).

This transport is framework-agnostic and provides:

* Async HTTP (httpx) with per-request timeout.
* Jittered exponential retries (bounded); honors ``Retry-After`` seconds.
* Deterministic mapping to domain errors (401/403/429/4xx/5xx).
* Prometheus counters for response statuses and retries.

Return shape:
* ``box_tariffs``: the ``response.data`` object of the provider body.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import suppress
from datetime import date
from typing import Any, Final

import httpx

from tariff_sync.domain.exceptions.tariffs import (
    UpstreamAuthError,
    UpstreamUnavailable,
    UpstreamValidationError,
)
from tariff_sync.infrastructure.external_apis.wildberries.settings import WildberriesSettings
from tariff_sync.infrastructure.logging.logger import get_json_logger, get_run_id
from tariff_sync.infrastructure.observability.metrics import (
    upstream_requests_total,
    upstream_retries_total,
)
from tariff_sync.infrastructure.resilience.retry import RetryPolicy, retry_async

log = get_json_logger(__name__)

PROVIDER: Final[str] = "wildberries"
BOX_TARIFFS_PATH: Final[str] = "/api/v1/tariffs/box"

_DEFAULT_BASE_BACKOFF: Final[float] = 0.5
_DEFAULT_MAX_BACKOFF: Final[float] = 8.0
_MAX_RETRY_AFTER_S: Final[float] = 60.0

_DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "User-Agent": "tariff-sync/0.1",
}


def _parse_retry_after(val: str | None) -> float | None:
    """Parse the HTTP ``Retry-After`` header (seconds form only)."""
    if not val:
        return None
    try:
        return min(_MAX_RETRY_AFTER_S, max(0.0, float(val)))
    except ValueError:
        return None


def _retry_after_hint(exc: Exception) -> float | None:
    if isinstance(exc, UpstreamUnavailable):
        return exc.details.get("retry_after")
    return None


class WildberriesClient:
    """Transport client for the Wildberries box tariffs endpoint."""

    def __init__(
        self,
        settings: WildberriesSettings,
        *,
        http: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the transport client.

        Args:
            settings: Provider settings loaded from environment.
            http: Optional shared ``httpx.AsyncClient``. If omitted, a client
                is created and owned by this instance.
            retry_policy: Optional retry configuration. When omitted, a
                jittered exponential policy is built from ``settings.max_retries``.
            sleep: Awaitable sleep used for backoff. ``Retry-After`` only
                lengthens the backoff, capped by the retry policy.
        """
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")
        self._timeout = float(settings.timeout_s)
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(
            timeout=self._timeout,
            headers=_DEFAULT_HEADERS.copy(),
        )
        if http is not None:
            for key, value in _DEFAULT_HEADERS.items():
                self._client.headers.setdefault(key, value)

        self._retry = retry_policy or RetryPolicy(
            total=settings.max_retries,
            base=_DEFAULT_BASE_BACKOFF,
            cap=_DEFAULT_MAX_BACKOFF,
            jitter=True,
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def box_tariffs(self, *, as_of: date) -> Mapping[str, Any]:
        """Fetch box tariffs for ``as_of`` and return ``response.data``.

        Raises:
            UpstreamAuthError: 401/403.
            UpstreamUnavailable: Transport failure, 429 or 5xx after retries.
            UpstreamValidationError: Any other non-2xx, non-JSON body, or a
                body without ``response.data``.
        """
        body = await self._get(BOX_TARIFFS_PATH, params={"date": as_of.isoformat()})
        envelope = body.get("response") if isinstance(body, Mapping) else None
        data = envelope.get("data") if isinstance(envelope, Mapping) else None
        if not isinstance(data, Mapping):
            raise UpstreamValidationError("bad_shape", details={"expected": "response.data:object"})
        return data

    async def _get(self, path: str, *, params: Mapping[str, Any]) -> Any:
        url = f"{self._base_url}{path}"
        headers: dict[str, str] = {}
        if self._settings.token is not None:
            headers["Authorization"] = f"Bearer {self._settings.token.get_secret_value()}"
        run_id = get_run_id()
        if run_id:
            headers["X-Request-ID"] = run_id

        async def _call() -> Any:
            try:
                response = await self._client.get(
                    url, params=params, headers=headers, timeout=self._timeout
                )
            except httpx.RequestError as exc:
                raise UpstreamUnavailable(
                    "transport_error", details={"error": type(exc).__name__}
                ) from exc

            upstream_requests_total.labels(PROVIDER, str(response.status_code)).inc()

            try:
                self._map_errors(response.status_code)
            except UpstreamUnavailable as exc:
                retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                if retry_after:
                    exc.details["retry_after"] = retry_after
                raise

            try:
                return response.json()
            except ValueError as exc:
                raise UpstreamValidationError("non_json", details={"error": str(exc)}) from exc

        def _on_retry(exc: Exception, attempt: int) -> None:
            reason = "other"
            if isinstance(exc, UpstreamUnavailable):
                reason = str(exc.details.get("status", "transport"))
            with suppress(Exception):
                upstream_retries_total.labels(PROVIDER, str(reason)).inc()
            log.warning(
                "wildberries.retry",
                extra={"extra": {"attempt": attempt + 1, "reason": str(reason)}},
            )

        return await retry_async(
            _call,
            policy=self._retry,
            retry_on=lambda exc: isinstance(exc, UpstreamUnavailable),
            on_retry=_on_retry,
            delay_hint=_retry_after_hint,
            sleep=self._sleep,
        )

    @staticmethod
    def _map_errors(status: int) -> None:
        """Raise domain exceptions for retryable and terminal HTTP statuses."""
        if status in (401, 403):
            raise UpstreamAuthError("credentials_rejected", details={"status": status})
        if status == 429 or status >= 500:
            raise UpstreamUnavailable("upstream_status", details={"status": status})
        if status >= 400:
            raise UpstreamValidationError("unexpected_status", details={"status": status})
