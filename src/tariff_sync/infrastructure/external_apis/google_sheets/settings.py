# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the Google Sheets transport client."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


class GoogleSheetsSettings(BaseSettings):
    """Configuration for the Google Sheets v4 client.

    Environment variables (with ``model_config.env_prefix``):

    * ``GOOGLE_SERVICE_ACCOUNT_KEY_PATH``
    * ``GOOGLE_SHEETS_BASE_URL``
    * ``GOOGLE_SHEETS_TIMEOUT_S``
    """

    service_account_key_path: Path | None = Field(
        None,
        description="Service-account JSON key file. Publishing is disabled when unset.",
    )
    sheets_base_url: str = Field(
        "https://sheets.googleapis.com/v4",
        description="Base URL for the Sheets REST API.",
    )
    sheets_timeout_s: float = Field(
        15.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="GOOGLE_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def enabled(self) -> bool:
        """Return True when a service-account key is configured."""
        return self.service_account_key_path is not None
