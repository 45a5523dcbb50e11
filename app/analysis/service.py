from __future__ import annotations

import uuid
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.models import ContractAnalysis
from app.analysis.prompt import (
    build_clause_suggestions_prompts,
    build_compliance_prompts,
    build_contract_analysis_prompts,
    build_missing_clauses_prompts,
)
from app.analysis.schemas import (
    DEFAULT_COMPLIANCE_LAWS,
    ClauseSuggestionsOut,
    ComplianceOut,
    MissingClausesOut,
    _LLMClauseSuggestionsJSON,
    _LLMComplianceJSON,
    _LLMContractAnalysisJSON,
    _LLMMissingClausesJSON,
)
from app.contracts.models import Contract
from app.core.db import utcnow
from app.core.llm.deps import LLMClient
from app.core.metrics import record_llm_request
from app.core.settings import get_settings
from app.domain.exceptions import PermissionDeniedError
from app.sharing.activity import record_activity
from app.users.models import User

_T = TypeVar("_T", bound=BaseModel)

TRUNCATION_MARKER = "\n[TRUNCATED]"


class AnalysisLLMError(Exception):
    """Raised when the LLM fails or returns invalid output."""


def truncate_for_prompt(*, text: str, max_chars: int) -> tuple[str, bool]:
    """
    Soft-cap contract text for the prompt.

    When truncation occurs the text is explicitly marked so the model does not infer
    what was cut.
    """

    if len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def _contract_for_prompt(*, contract: Contract, max_chars: int) -> tuple[dict[str, Any], bool]:
    text = contract.content
    if not text.strip() and contract.clauses:
        # Wizard drafts may carry only structured clauses.
        text = "\n\n".join(f"{c.get('title')}\n{c.get('content')}" for c in contract.clauses)
    text, truncated = truncate_for_prompt(text=text, max_chars=max_chars)
    payload = {
        "type": contract.type,
        "title": contract.title,
        "jurisdiction": contract.jurisdiction,
        "clause_titles": [c.get("title") for c in contract.clauses],
        "content": text,
        "content_truncated": truncated,
    }
    return payload, truncated


def ensure_can_access_analysis(*, analysis: ContractAnalysis, user: User) -> None:
    if analysis.user_id != user.id and not user.is_admin:
        raise PermissionDeniedError("You do not have access to this analysis")


async def get_analysis(*, session: AsyncSession, analysis_id: uuid.UUID) -> ContractAnalysis | None:
    return await session.get(ContractAnalysis, analysis_id)


async def get_latest_analysis(
    *, session: AsyncSession, contract_id: uuid.UUID
) -> ContractAnalysis | None:
    stmt = (
        select(ContractAnalysis)
        .where(ContractAnalysis.contract_id == contract_id)
        .order_by(ContractAnalysis.created_at.desc(), ContractAnalysis.id.desc())
        .limit(1)
    )
    return (await session.execute(stmt)).scalars().first()


async def list_user_analyses(
    *, session: AsyncSession, user_id: uuid.UUID, limit: int
) -> list[ContractAnalysis]:
    stmt = (
        select(ContractAnalysis)
        .where(ContractAnalysis.user_id == user_id)
        .order_by(ContractAnalysis.created_at.desc(), ContractAnalysis.id.desc())
        .limit(limit)
    )
    return list((await session.execute(stmt)).scalars().all())


async def delete_analysis(*, session: AsyncSession, analysis: ContractAnalysis) -> None:
    await session.execute(delete(ContractAnalysis).where(ContractAnalysis.id == analysis.id))
    await session.commit()


class ContractAnalysisService:
    """LLM-backed contract review. Only `analyze_contract` persists its result."""

    def __init__(self, *, session: AsyncSession, llm_client: LLMClient):
        self._session = session
        self._llm = llm_client

    async def _generate(
        self, *, operation: str, prompts: tuple[str, str], schema: type[_T]
    ) -> _T:
        system_prompt, user_prompt = prompts
        try:
            raw = await self._llm.generate_json(
                system_prompt=system_prompt, user_prompt=user_prompt, temperature=0.0
            )
            parsed = schema.model_validate(raw)
        except Exception as exc:  # noqa: BLE001
            record_llm_request(operation=operation, outcome="failure")
            raise AnalysisLLMError(f"LLM {operation} failed") from exc

        record_llm_request(operation=operation, outcome="success")
        return parsed

    def _max_prompt_chars(self) -> int:
        return int(get_settings().openai_max_prompt_chars)

    def _model_name(self) -> str:
        return getattr(self._llm, "model", None) or get_settings().openai_model

    async def analyze_contract(self, *, contract: Contract, user: User) -> ContractAnalysis:
        payload, truncated = _contract_for_prompt(
            contract=contract, max_chars=self._max_prompt_chars()
        )
        parsed = await self._generate(
            operation="analyze_contract",
            prompts=build_contract_analysis_prompts(contract=payload),
            schema=_LLMContractAnalysisJSON,
        )

        analysis = ContractAnalysis(
            contract_id=contract.id,
            user_id=user.id,
            risk_score=parsed.risk_score,
            completeness=parsed.completeness,
            issues=parsed.issues,
            strengths=parsed.strengths,
            weaknesses=parsed.weaknesses,
            recommendations=parsed.recommendations,
            compliant_with_indian_law=parsed.compliant_with_indian_law,
            analysis_metadata={
                "model": self._model_name(),
                "confidence": parsed.analysis_metadata.confidence,
                "reasoning": parsed.analysis_metadata.reasoning,
                "truncated": truncated,
                "analyzed_at": utcnow().isoformat(),
            },
        )
        self._session.add(analysis)
        await self._session.flush()
        record_activity(
            session=self._session,
            contract_id=contract.id,
            user_id=user.id,
            activity_type="analyzed",
            details={"analysis_id": str(analysis.id), "risk_score": parsed.risk_score},
        )
        await self._session.commit()
        await self._session.refresh(analysis)
        return analysis

    async def suggest_clause_improvements(
        self, *, contract: Contract, clause_id: str
    ) -> ClauseSuggestionsOut | None:
        """Return suggestions for one clause, or None when the contract has no such clause."""

        clause = next((c for c in contract.clauses if c.get("id") == clause_id), None)
        if clause is None:
            return None

        content, _ = truncate_for_prompt(
            text=str(clause.get("content") or ""), max_chars=self._max_prompt_chars()
        )
        parsed = await self._generate(
            operation="suggest_clause_improvements",
            prompts=build_clause_suggestions_prompts(
                contract={"type": contract.type, "jurisdiction": contract.jurisdiction},
                clause={"title": clause.get("title"), "content": content},
            ),
            schema=_LLMClauseSuggestionsJSON,
        )
        return ClauseSuggestionsOut(
            contract_id=contract.id,
            clause_id=clause_id,
            clause_title=str(clause.get("title") or ""),
            original_content=str(clause.get("content") or ""),
            improvement_suggestions=parsed.improvement_suggestions,
            risk_areas=parsed.risk_areas,
            alternative_language=parsed.alternative_language,
            legal_citations=parsed.legal_citations,
        )

    async def identify_missing_clauses(self, *, contract: Contract) -> MissingClausesOut:
        payload, _ = _contract_for_prompt(contract=contract, max_chars=self._max_prompt_chars())
        parsed = await self._generate(
            operation="identify_missing_clauses",
            prompts=build_missing_clauses_prompts(contract=payload),
            schema=_LLMMissingClausesJSON,
        )
        return MissingClausesOut(
            contract_id=contract.id,
            contract_type=contract.type,
            missing_clauses=parsed.missing_clauses,
        )

    async def assess_compliance(
        self, *, contract: Contract, laws: list[str] | None
    ) -> ComplianceOut:
        laws_checked = [law.strip() for law in (laws or []) if law.strip()] or list(
            DEFAULT_COMPLIANCE_LAWS
        )
        payload, _ = _contract_for_prompt(contract=contract, max_chars=self._max_prompt_chars())
        parsed = await self._generate(
            operation="assess_compliance",
            prompts=build_compliance_prompts(contract=payload, laws=laws_checked),
            schema=_LLMComplianceJSON,
        )
        return ComplianceOut(
            contract_id=contract.id,
            contract_type=contract.type,
            laws_checked=laws_checked,
            compliance_score=parsed.compliance_score,
            compliant_with_indian_law=parsed.compliant_with_indian_law,
            law_specific_compliance=parsed.law_specific_compliance,
            overall_assessment=parsed.overall_assessment,
            key_concerns=parsed.key_concerns,
        )
