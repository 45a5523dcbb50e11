from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.contracts.schemas import Clause, ContractStatus, Party


class ShareLinkCreate(BaseModel):
    expires_at: datetime | None = Field(
        default=None,
        description="Optional expiry (must be in the future). Naive values are read as UTC.",
    )


class ShareLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    token: str
    url: str = Field(description="Public URL of the read-only contract view.")
    expires_at: datetime | None = None
    is_active: bool
    created_at: datetime


class SharedContractOut(BaseModel):
    """Read-only contract view served through a share link (no owner or document data)."""

    model_config = ConfigDict(from_attributes=True)

    title: str
    type: str
    status: ContractStatus
    jurisdiction: str
    description: str | None = None
    content: str
    parties: list[Party]
    clauses: list[Clause]
    lexi_cert_id: str
    created_at: datetime
    updated_at: datetime


class ActivityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    user_id: uuid.UUID | None = None
    activity_type: str
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("details", "metadata")
    )
    created_at: datetime


class ActivityListOut(BaseModel):
    items: list[ActivityOut]
    limit: int
