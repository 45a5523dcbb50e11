from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.core.llm.deps import LLMClient, get_openai_client
from app.core.llm.openai_client import OpenAIError
from app.core.metrics import record_llm_request
from app.drafting.schemas import (
    ClauseAnalysisOut,
    ClauseAnalyzeIn,
    ClauseComposeIn,
    ClauseEnhanceIn,
    ClauseEnhanceOut,
    ComposedClauseOut,
    ContractDraftIn,
    ContractDraftOut,
)
from app.drafting.service import DraftingLLMError, DraftingService
from app.users.deps import get_current_user
from app.users.models import User

router = APIRouter(prefix="/drafting", tags=["drafting"])
logger = logging.getLogger("app.drafting")

_T = TypeVar("_T")


def _service_or_502(
    *, llm_client: LLMClient | None, operation: str, request_id: str | None, user: User
) -> DraftingService:
    if llm_client is None:
        record_llm_request(operation=operation, outcome="unavailable")
        logger.info(
            "Drafting failed (LLM not configured)",
            extra={
                "request_id": request_id,
                "user_id": str(user.id),
                "operation": operation,
                "success": False,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="LLM service unavailable"
        )
    return DraftingService(llm_client=llm_client)


async def _run(
    *, call: Awaitable[_T], operation: str, request_id: str | None, user: User
) -> _T:
    """
    Await an LLM-backed call, mapping failures to 502.

    Prompts and outputs contain contract text and are never logged.
    """

    try:
        result = await call
    except (OpenAIError, DraftingLLMError):
        logger.info(
            "Drafting failed",
            extra={
                "request_id": request_id,
                "user_id": str(user.id),
                "operation": operation,
                "success": False,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="LLM service failed"
        ) from None

    logger.info(
        "Drafting completed",
        extra={
            "request_id": request_id,
            "user_id": str(user.id),
            "operation": operation,
            "success": True,
        },
    )
    return result


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


@router.post("/contracts", response_model=ContractDraftOut)
async def draft_contract(
    payload: ContractDraftIn,
    request: Request,
    user: User = Depends(get_current_user),
    openai_client=Depends(get_openai_client),
) -> ContractDraftOut:
    """Generate a full contract draft under Indian law (not persisted)."""

    request_id = _request_id(request)
    svc = _service_or_502(
        llm_client=openai_client, operation="draft_contract", request_id=request_id, user=user
    )
    return await _run(
        call=svc.draft_contract(
            contract_type=payload.type,
            parties=[p.model_dump(mode="json") for p in payload.parties],
            jurisdiction=payload.jurisdiction,
            requirements=payload.requirements,
        ),
        operation="draft_contract",
        request_id=request_id,
        user=user,
    )


@router.post("/clauses/enhance", response_model=ClauseEnhanceOut)
async def enhance_clause(
    payload: ClauseEnhanceIn,
    request: Request,
    user: User = Depends(get_current_user),
    openai_client=Depends(get_openai_client),
) -> ClauseEnhanceOut:
    request_id = _request_id(request)
    svc = _service_or_502(
        llm_client=openai_client, operation="enhance_clause", request_id=request_id, user=user
    )
    return await _run(
        call=svc.enhance_clause(
            action=payload.action,
            content=payload.content,
            jurisdiction=payload.jurisdiction,
            tone=payload.tone,
        ),
        operation="enhance_clause",
        request_id=request_id,
        user=user,
    )


@router.post("/clauses/analyze", response_model=ClauseAnalysisOut)
async def analyze_clause(
    payload: ClauseAnalyzeIn,
    request: Request,
    user: User = Depends(get_current_user),
    openai_client=Depends(get_openai_client),
) -> ClauseAnalysisOut:
    request_id = _request_id(request)
    svc = _service_or_502(
        llm_client=openai_client, operation="analyze_clause", request_id=request_id, user=user
    )
    return await _run(
        call=svc.analyze_clause(content=payload.content),
        operation="analyze_clause",
        request_id=request_id,
        user=user,
    )


@router.post("/clauses/compose", response_model=ComposedClauseOut)
async def compose_clause(
    payload: ClauseComposeIn,
    request: Request,
    user: User = Depends(get_current_user),
    openai_client=Depends(get_openai_client),
) -> ComposedClauseOut:
    request_id = _request_id(request)
    svc = _service_or_502(
        llm_client=openai_client, operation="compose_clause", request_id=request_id, user=user
    )
    return await _run(
        call=svc.compose_clause(
            goal=payload.goal,
            context=payload.context,
            contract_type=payload.contract_type,
            jurisdiction=payload.jurisdiction,
            tone=payload.tone,
            user_role=payload.user_role,
        ),
        operation="compose_clause",
        request_id=request_id,
        user=user,
    )
