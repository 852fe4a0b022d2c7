# src/tariff_sync/infrastructure/external_apis/google_sheets/client.py
# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Google Sheets v4 Transport Client (async).

Provides the four calls the publisher needs:

* ``sheet_titles`` - ``GET /spreadsheets/{id}?fields=sheets.properties.title``
* ``add_sheet`` - ``POST /spreadsheets/{id}:batchUpdate`` with ``addSheet``
* ``clear_values`` - ``POST /spreadsheets/{id}/values/{range}:clear``
* ``update_values`` - ``PUT /spreadsheets/{id}/values/{range}?valueInputOption=RAW``

Authentication uses a service-account key through ``google-auth``; the
blocking token refresh runs in a worker thread. Every transport failure or
non-2xx status surfaces as :class:`PublishError`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Final
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from tariff_sync.domain.exceptions.tariffs import PublishError
from tariff_sync.infrastructure.external_apis.google_sheets.settings import (
    SHEETS_SCOPE,
    GoogleSheetsSettings,
)
from tariff_sync.infrastructure.observability.metrics import upstream_requests_total

PROVIDER: Final[str] = "google_sheets"

TokenProvider = Callable[[], Awaitable[str]]


class ServiceAccountTokenProvider:
    """Async access-token source backed by a service-account key file."""

    def __init__(self, key_path: str, scopes: Sequence[str] = (SHEETS_SCOPE,)) -> None:
        self._credentials = service_account.Credentials.from_service_account_file(
            key_path, scopes=list(scopes)
        )

    async def __call__(self) -> str:
        if not self._credentials.valid:
            await asyncio.to_thread(self._refresh)
        return str(self._credentials.token)

    def _refresh(self) -> None:
        self._credentials.refresh(Request())


class GoogleSheetsClient:
    """Thin async wrapper over the Sheets REST API."""

    def __init__(
        self,
        settings: GoogleSheetsSettings,
        *,
        token_provider: TokenProvider | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Sheets settings.
            token_provider: Async callable returning a bearer token. Defaults
                to a service-account provider built from the key path.
            http: Optional shared ``httpx.AsyncClient``.
        """
        if token_provider is None:
            if settings.service_account_key_path is None:
                raise ValueError("GOOGLE_SERVICE_ACCOUNT_KEY_PATH is not configured")
            token_provider = ServiceAccountTokenProvider(str(settings.service_account_key_path))
        self._token = token_provider
        self._base_url = settings.sheets_base_url.rstrip("/")
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(timeout=settings.sheets_timeout_s)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def sheet_titles(self, spreadsheet_id: str) -> list[str]:
        body = await self._request(
            "GET",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}",
            spreadsheet_id=spreadsheet_id,
            params={"fields": "sheets.properties.title"},
        )
        sheets = body.get("sheets", []) if isinstance(body, dict) else []
        return [
            str(s["properties"]["title"])
            for s in sheets
            if isinstance(s, dict) and "title" in s.get("properties", {})
        ]

    async def add_sheet(self, spreadsheet_id: str, title: str) -> None:
        await self._request(
            "POST",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}:batchUpdate",
            spreadsheet_id=spreadsheet_id,
            json={"requests": [{"addSheet": {"properties": {"title": title}}}]},
        )

    async def clear_values(self, spreadsheet_id: str, a1_range: str) -> None:
        await self._request(
            "POST",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(a1_range, safe='')}:clear",
            spreadsheet_id=spreadsheet_id,
            json={},
        )

    async def update_values(
        self, spreadsheet_id: str, a1_range: str, values: Sequence[Sequence[str]]
    ) -> None:
        await self._request(
            "PUT",
            f"/spreadsheets/{quote(spreadsheet_id, safe='')}/values/{quote(a1_range, safe='')}",
            spreadsheet_id=spreadsheet_id,
            params={"valueInputOption": "RAW"},
            json={
                "range": a1_range,
                "majorDimension": "ROWS",
                "values": [list(row) for row in values],
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        spreadsheet_id: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            token = await self._token()
        except Exception as exc:
            raise PublishError(
                "auth_failed", details={"spreadsheet_id": spreadsheet_id, "error": str(exc)}
            ) from exc

        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as exc:
            raise PublishError(
                "transport_error",
                details={"spreadsheet_id": spreadsheet_id, "error": type(exc).__name__},
            ) from exc

        upstream_requests_total.labels(PROVIDER, str(response.status_code)).inc()
        if response.status_code >= 400:
            raise PublishError(
                "sheets_api_error",
                details={
                    "spreadsheet_id": spreadsheet_id,
                    "status": response.status_code,
                    "body": response.text[:500],
                },
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}
