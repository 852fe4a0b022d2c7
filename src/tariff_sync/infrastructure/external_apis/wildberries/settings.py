# Copyright (c) Tariff Sync.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the Wildberries tariffs client."""

from __future__ import annotations

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WildberriesSettings(BaseSettings):
    """Configuration for the Wildberries tariffs API client.

    Environment variables (with ``model_config.env_prefix``):

    * ``WB_BASE_URL``
    * ``WB_TOKEN``
    * ``WB_TIMEOUT_S``
    * ``WB_MAX_RETRIES``
    * ``WB_USE_MOCK``
    """

    base_url: str = Field(
        "https://common-api.wildberries.ru",
        description="Base URL for the Wildberries common API.",
    )
    token: SecretStr | None = Field(
        None,
        description="Bearer token for the tariffs endpoint.",
    )
    timeout_s: float = Field(
        10.0,
        gt=0,
        description="Per-request timeout in seconds for the transport client.",
    )
    max_retries: int = Field(
        3,
        ge=0,
        le=10,
        description="Maximum number of retry attempts for retryable failures.",
    )
    use_mock: bool = Field(
        False,
        description="Serve a fixed development snapshot instead of calling the API.",
    )

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="WB_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_token_for_live_calls(self) -> WildberriesSettings:
        if not self.use_mock and (self.token is None or not self.token.get_secret_value()):
            raise ValueError("WB_TOKEN is required unless WB_USE_MOCK is enabled")
        return self
