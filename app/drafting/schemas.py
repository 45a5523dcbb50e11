from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from app.contracts.schemas import ContractType, Party

ClauseAction = Literal["rewrite", "explain", "simplify", "strengthen", "validate"]
Tone = Literal["friendly", "balanced", "strict"]


class ContractDraftIn(BaseModel):
    type: ContractType
    parties: list[Party] = Field(min_length=1)
    jurisdiction: str = Field(
        default="India",
        min_length=1,
        max_length=100,
        description="'India' or an Indian state (adds state-specific guidance).",
    )
    requirements: str | None = Field(default=None, max_length=10_000)


class ContractDraftOut(BaseModel):
    content: str


class ClauseEnhanceIn(BaseModel):
    action: ClauseAction
    content: str = Field(min_length=1, max_length=20_000)
    jurisdiction: str = Field(default="India", min_length=1, max_length=100)
    tone: Tone = "balanced"


class ClauseEnhanceOut(BaseModel):
    action: ClauseAction
    result: str
    explanation: str | None = None


class ClauseAnalyzeIn(BaseModel):
    content: str = Field(min_length=1, max_length=20_000)


class ClauseAnalysisOut(BaseModel):
    explanation: str
    suggestions: list[str]
    legal_context: str


class ClauseComposeIn(BaseModel):
    goal: str = Field(min_length=1, max_length=2_000, examples=["Limit liability to fees paid"])
    context: str | None = Field(default=None, max_length=10_000)
    contract_type: ContractType | None = None
    jurisdiction: str = Field(default="India", min_length=1, max_length=100)
    tone: Tone = "balanced"
    user_role: str | None = Field(default=None, max_length=100)


class ComposedClauseOut(BaseModel):
    title: str
    content: str
    explanation: str | None = None


class _LLMDraftJSON(BaseModel):
    content: str = Field(min_length=1)


class _LLMEnhanceJSON(BaseModel):
    result: str = Field(min_length=1)
    explanation: str | None = None


class _LLMClauseAnalysisJSON(BaseModel):
    explanation: str = Field(min_length=1)
    suggestions: list[str] = Field(default_factory=list)
    legal_context: str = ""


class _LLMComposeJSON(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    explanation: str | None = None
