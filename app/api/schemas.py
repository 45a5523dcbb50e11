from __future__ import annotations

from pydantic import BaseModel, Field


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(
        description="Service status indicator. `ok` means the API process is up and responding.",
        examples=["ok"],
    )


class GatewayHealthOut(BaseModel):
    """Gateway health: the gateway process itself plus its configured upstreams."""

    status: str = Field(examples=["ok"])
    service: str = Field(default="gateway", examples=["gateway"])
    services: dict[str, str] = Field(
        default_factory=dict,
        description="Configured path prefix to upstream base URL mapping.",
        examples=[{"/contracts": "http://api:8000"}],
    )
