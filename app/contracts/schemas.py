from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

ContractType = Literal[
    "nda",
    "freelance",
    "employment",
    "founder",
    "lease",
    "sale_of_goods",
    "distribution",
    "franchise",
    "agency",
    "joint_venture",
    "partnership",
    "consulting",
    "outsourcing",
    "maintenance",
    "logistics",
    "loan",
    "investment",
    "venture_capital",
    "guarantee",
    "security",
    "property_sale",
    "rent_residential",
    "rent_commercial",
    "construction",
    "development",
    "ip_licensing",
    "ip_transfer",
    "technology_transfer",
    "software_development",
    "publishing",
    "e_commerce",
    "startup_incorporation",
    "fdi_compliance",
    "gst_compliance",
    "msme",
    "other",
]
ContractStatus = Literal["draft", "pending", "signed", "expired", "cancelled"]
PartyRole = Literal["client", "provider", "employer", "employee", "lessor", "lessee", "other"]
ContractSortField = Literal["created_at", "updated_at", "title"]
SortOrder = Literal["asc", "desc"]


class Party(BaseModel):
    name: str = Field(min_length=1, max_length=255, examples=["Acme Technologies Pvt. Ltd."])
    role: PartyRole = Field(examples=["client"])
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=1000)


class ClauseIn(BaseModel):
    id: str | None = Field(
        default=None,
        min_length=1,
        max_length=64,
        description="Clause identifier, unique within the contract. Assigned when omitted.",
    )
    title: str = Field(min_length=1, max_length=255, examples=["Confidentiality"])
    content: str = Field(min_length=1)
    explanation: str | None = Field(
        default=None, description="Plain-language explanation shown alongside the clause."
    )


class Clause(BaseModel):
    id: str
    title: str
    content: str
    explanation: str | None = None


class ContractCreate(BaseModel):
    """Wizard submission: metadata, parties and (optionally) drafted clauses."""

    title: str = Field(min_length=1, max_length=255, examples=["Website development agreement"])
    type: ContractType
    jurisdiction: str = Field(default="India", min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    content: str = Field(default="", description="Full contract text.")
    parties: list[Party] = Field(min_length=1)
    clauses: list[ClauseIn] = Field(default_factory=list)
    status: ContractStatus = "draft"


class ContractUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    type: ContractType | None = None
    jurisdiction: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    content: str | None = None
    parties: list[Party] | None = Field(default=None, min_length=1)
    clauses: list[ClauseIn] | None = None


class ContractStatusUpdate(BaseModel):
    status: ContractStatus


class ContractOut(BaseModel):
    """Contract view in the shape the web client consumes."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    type: str
    status: ContractStatus
    jurisdiction: str
    description: str | None = None
    content: str
    parties: list[Party]
    clauses: list[Clause]
    template_id: uuid.UUID | None = None
    lexi_cert_id: str = Field(description="Human-facing certificate id (LEXI-XXXXXXXX).")
    has_document: bool
    document_mime_type: str | None = None
    document_size_bytes: int | None = None
    document_uploaded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ContractListItemOut(BaseModel):
    """List item excludes the full text and clauses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    type: str
    status: ContractStatus
    jurisdiction: str
    lexi_cert_id: str
    has_document: bool
    created_at: datetime
    updated_at: datetime


class ContractListOut(BaseModel):
    items: list[ContractListItemOut]
    limit: int = Field(examples=[50])
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for the next page. Null when there are no more results.",
    )


class ContractVersionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    version: int
    content: str
    clauses: list[Clause]
    changes: list[str] = Field(description="Names of the fields changed by this version.")
    created_by: uuid.UUID | None = None
    created_at: datetime


class ContractStatsOut(BaseModel):
    """Dashboard counters for the caller's contracts and stored analyses."""

    total_contracts: int
    by_status: dict[ContractStatus, int] = Field(
        description="Contract count per status; every status is present, zero when unused."
    )
    analyzed_contracts: int = Field(description="Contracts with at least one stored analysis.")
    average_risk_score: float | None = Field(
        default=None, description="Mean risk score of the latest analysis per contract."
    )
    average_completeness: float | None = None
