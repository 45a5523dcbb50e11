from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.contracts.schemas import Clause, ClauseIn, ContractType, Party


class TemplateCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255, examples=["Mutual NDA (India)"])
    type: ContractType
    description: str = Field(default="", max_length=5000)
    content: str = Field(default="")
    clauses: list[ClauseIn] = Field(default_factory=list)
    is_public: bool = Field(default=False, description="Only administrators may publish templates.")


class TemplateUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    type: ContractType | None = None
    description: str | None = Field(default=None, max_length=5000)
    content: str | None = None
    clauses: list[ClauseIn] | None = None
    is_public: bool | None = None


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID | None = None
    title: str
    type: str
    description: str
    content: str
    clauses: list[Clause]
    is_public: bool
    created_at: datetime
    updated_at: datetime


class TemplateInstantiate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    jurisdiction: str = Field(default="India", min_length=1, max_length=100)
    parties: list[Party] = Field(min_length=1)
