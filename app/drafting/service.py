from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

from app.core.llm.deps import LLMClient
from app.core.metrics import record_llm_request
from app.drafting.prompt import (
    build_clause_analysis_prompts,
    build_clause_compose_prompts,
    build_clause_enhance_prompts,
    build_contract_draft_prompts,
)
from app.drafting.schemas import (
    ClauseAnalysisOut,
    ClauseEnhanceOut,
    ComposedClauseOut,
    ContractDraftOut,
    _LLMClauseAnalysisJSON,
    _LLMComposeJSON,
    _LLMDraftJSON,
    _LLMEnhanceJSON,
)

_T = TypeVar("_T", bound=BaseModel)

# Drafting is generative; a little temperature gives less formulaic text.
_DRAFTING_TEMPERATURE = 0.7


class DraftingLLMError(Exception):
    """Raised when the LLM fails or returns output that does not match the expected shape."""


class DraftingService:
    """Lexi assistant operations. Stateless: nothing here is persisted."""

    def __init__(self, *, llm_client: LLMClient):
        self._llm = llm_client

    async def _generate(
        self,
        *,
        operation: str,
        prompts: tuple[str, str],
        schema: type[_T],
        max_tokens: int,
    ) -> _T:
        system_prompt, user_prompt = prompts
        try:
            raw: dict[str, Any] = await self._llm.generate_json(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=_DRAFTING_TEMPERATURE,
                max_tokens=max_tokens,
            )
            parsed = schema.model_validate(raw)
        except Exception as exc:  # noqa: BLE001
            record_llm_request(operation=operation, outcome="failure")
            raise DraftingLLMError(f"LLM {operation} failed") from exc

        record_llm_request(operation=operation, outcome="success")
        return parsed

    async def draft_contract(
        self,
        *,
        contract_type: str,
        parties: list[dict[str, Any]],
        jurisdiction: str,
        requirements: str | None,
    ) -> ContractDraftOut:
        parsed = await self._generate(
            operation="draft_contract",
            prompts=build_contract_draft_prompts(
                contract_type=contract_type,
                parties=parties,
                jurisdiction=jurisdiction,
                requirements=requirements,
            ),
            schema=_LLMDraftJSON,
            max_tokens=4000,
        )
        return ContractDraftOut(content=parsed.content)

    async def enhance_clause(
        self,
        *,
        action: str,
        content: str,
        jurisdiction: str,
        tone: str,
    ) -> ClauseEnhanceOut:
        parsed = await self._generate(
            operation="enhance_clause",
            prompts=build_clause_enhance_prompts(
                action=action, content=content, jurisdiction=jurisdiction, tone=tone
            ),
            schema=_LLMEnhanceJSON,
            max_tokens=1000,
        )
        return ClauseEnhanceOut(
            action=action, result=parsed.result, explanation=parsed.explanation or None
        )

    async def analyze_clause(self, *, content: str) -> ClauseAnalysisOut:
        parsed = await self._generate(
            operation="analyze_clause",
            prompts=build_clause_analysis_prompts(content=content),
            schema=_LLMClauseAnalysisJSON,
            max_tokens=1000,
        )
        return ClauseAnalysisOut(
            explanation=parsed.explanation,
            suggestions=parsed.suggestions,
            legal_context=parsed.legal_context or "No legal context provided.",
        )

    async def compose_clause(
        self,
        *,
        goal: str,
        context: str | None,
        contract_type: str | None,
        jurisdiction: str,
        tone: str,
        user_role: str | None,
    ) -> ComposedClauseOut:
        parsed = await self._generate(
            operation="compose_clause",
            prompts=build_clause_compose_prompts(
                goal=goal,
                context=context,
                contract_type=contract_type,
                jurisdiction=jurisdiction,
                tone=tone,
                user_role=user_role,
            ),
            schema=_LLMComposeJSON,
            max_tokens=1000,
        )
        return ComposedClauseOut(
            title=parsed.title, content=parsed.content, explanation=parsed.explanation or None
        )
