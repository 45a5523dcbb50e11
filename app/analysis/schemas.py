from __future__ import annotations

import math
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_COMPLIANCE_LAWS = (
    "Indian Contract Act, 1872",
    "Specific Relief Act, 1963",
    "Information Technology Act, 2000",
)


class AnalysisMetadata(BaseModel):
    model: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    reasoning: str | None = None
    truncated: bool = Field(
        default=False, description="True when the contract text was cut to fit the prompt."
    )
    analyzed_at: datetime | None = None


class ContractAnalysisOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    contract_id: uuid.UUID
    user_id: uuid.UUID
    risk_score: int = Field(ge=1, le=100, description="Overall risk (higher means riskier).")
    completeness: int = Field(ge=1, le=100)
    issues: list[str]
    strengths: list[str]
    weaknesses: list[str]
    recommendations: list[str]
    compliant_with_indian_law: bool
    analysis_metadata: AnalysisMetadata
    created_at: datetime


class ContractAnalysisListOut(BaseModel):
    items: list[ContractAnalysisOut]
    limit: int


class ClauseSuggestionsOut(BaseModel):
    contract_id: uuid.UUID
    clause_id: str
    clause_title: str
    original_content: str
    improvement_suggestions: list[str]
    risk_areas: list[str]
    alternative_language: str | None = None
    legal_citations: list[str]


class MissingClause(BaseModel):
    title: str
    importance: Literal["critical", "important", "recommended"] = "recommended"
    description: str = ""
    sample_content: str | None = None


class MissingClausesOut(BaseModel):
    contract_id: uuid.UUID
    contract_type: str
    missing_clauses: list[MissingClause]


class ComplianceIn(BaseModel):
    laws: list[str] | None = Field(
        default=None,
        max_length=20,
        description="Statutes to check. Defaults to the core Indian contract statutes.",
    )


class LawCompliance(BaseModel):
    law: str
    is_compliant: bool
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ComplianceOut(BaseModel):
    contract_id: uuid.UUID
    contract_type: str
    laws_checked: list[str]
    compliance_score: int = Field(ge=1, le=100)
    compliant_with_indian_law: bool
    law_specific_compliance: list[LawCompliance]
    overall_assessment: str
    key_concerns: list[str]


def _clamp_score(value: Any) -> int:
    # Models occasionally answer 0 or 0-1 fractions; keep the stored score within 1..100.
    try:
        score = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("score must be a number") from exc
    if math.isnan(score):
        raise ValueError("score must be a number")
    if 0.0 < score < 1.0:
        score *= 100.0
    return int(min(max(round(score), 1), 100))


class _LLMAnalysisMetadataJSON(BaseModel):
    confidence: float | None = None
    reasoning: str | None = None

    @field_validator("confidence")
    @classmethod
    def _confidence_range(cls, v: float | None) -> float | None:
        if v is None:
            return None
        if not math.isfinite(v):
            raise ValueError("confidence must be a finite number")
        return min(max(v / 100.0 if v > 1.0 else v, 0.0), 1.0)


class _LLMContractAnalysisJSON(BaseModel):
    risk_score: int
    completeness: int
    issues: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    compliant_with_indian_law: bool
    analysis_metadata: _LLMAnalysisMetadataJSON = Field(default_factory=_LLMAnalysisMetadataJSON)

    @field_validator("risk_score", "completeness", mode="before")
    @classmethod
    def _scores(cls, v: Any) -> int:
        return _clamp_score(v)


class _LLMClauseSuggestionsJSON(BaseModel):
    improvement_suggestions: list[str] = Field(default_factory=list)
    risk_areas: list[str] = Field(default_factory=list)
    alternative_language: str | None = None
    legal_citations: list[str] = Field(default_factory=list)


class _LLMMissingClausesJSON(BaseModel):
    missing_clauses: list[MissingClause] = Field(default_factory=list)


class _LLMComplianceJSON(BaseModel):
    compliance_score: int
    compliant_with_indian_law: bool
    law_specific_compliance: list[LawCompliance] = Field(default_factory=list)
    overall_assessment: str = ""
    key_concerns: list[str] = Field(default_factory=list)

    @field_validator("compliance_score", mode="before")
    @classmethod
    def _score(cls, v: Any) -> int:
        return _clamp_score(v)
