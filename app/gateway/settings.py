from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Gateway configuration. Kept separate so the proxy process needs no database."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    services: dict[str, str] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("GATEWAY_SERVICES", "gateway_services"),
        description=(
            "JSON object mapping path prefixes to upstream base URLs, "
            'e.g. {"/contracts": "http://contracts:8000"}.'
        ),
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        validation_alias=AliasChoices("GATEWAY_TIMEOUT_SECONDS", "gateway_timeout_seconds"),
        description="Timeout for proxied upstream requests (seconds).",
    )


@lru_cache
def get_gateway_settings() -> GatewaySettings:
    return GatewaySettings()
