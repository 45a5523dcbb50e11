from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.schemas import (
    ClauseSuggestionsOut,
    ComplianceIn,
    ComplianceOut,
    ContractAnalysisListOut,
    ContractAnalysisOut,
    MissingClausesOut,
)
from app.analysis.service import (
    AnalysisLLMError,
    ContractAnalysisService,
    delete_analysis,
    ensure_can_access_analysis,
    get_analysis,
    get_latest_analysis,
    list_user_analyses,
)
from app.contracts.deps import get_owned_contract
from app.contracts.models import Contract
from app.core.db import get_session
from app.core.llm.deps import LLMClient, get_openai_client
from app.core.llm.openai_client import OpenAIError
from app.core.metrics import record_llm_request
from app.users.deps import get_current_user
from app.users.models import User

router = APIRouter(prefix="/analysis", tags=["analysis"])
logger = logging.getLogger("app.analysis")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _service_or_502(
    *,
    session: AsyncSession,
    llm_client: LLMClient | None,
    operation: str,
    request_id: str | None,
    contract: Contract,
) -> ContractAnalysisService:
    if llm_client is None:
        record_llm_request(operation=operation, outcome="unavailable")
        logger.info(
            "Contract analysis failed (LLM not configured)",
            extra={
                "request_id": request_id,
                "contract_id": str(contract.id),
                "operation": operation,
                "success": False,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="LLM service unavailable"
        )
    return ContractAnalysisService(session=session, llm_client=llm_client)


def _llm_failed(*, operation: str, request_id: str | None, contract: Contract) -> HTTPException:
    logger.info(
        "Contract analysis failed",
        extra={
            "request_id": request_id,
            "contract_id": str(contract.id),
            "operation": operation,
            "success": False,
        },
    )
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="LLM service failed")


@router.post(
    "/contracts/{contract_id}",
    status_code=status.HTTP_201_CREATED,
    response_model=ContractAnalysisOut,
)
async def analyze_contract(
    request: Request,
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    openai_client=Depends(get_openai_client),
) -> ContractAnalysisOut:
    """
    Run an AI review of the contract and store the result.

    Prompts and model output are never logged; only the validated result is stored.
    """

    request_id = _request_id(request)
    svc = _service_or_502(
        session=session,
        llm_client=openai_client,
        operation="analyze_contract",
        request_id=request_id,
        contract=contract,
    )
    try:
        analysis = await svc.analyze_contract(contract=contract, user=user)
    except (OpenAIError, AnalysisLLMError):
        raise _llm_failed(
            operation="analyze_contract", request_id=request_id, contract=contract
        ) from None

    logger.info(
        "Contract analysis stored",
        extra={
            "request_id": request_id,
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "analysis_id": str(analysis.id),
            "success": True,
        },
    )
    return analysis


@router.get("/contracts/{contract_id}", response_model=ContractAnalysisOut)
async def get_contract_latest_analysis(
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
) -> ContractAnalysisOut:
    analysis = await get_latest_analysis(session=session, contract_id=contract.id)
    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No analysis found for this contract"
        )
    return analysis


@router.post(
    "/contracts/{contract_id}/clauses/{clause_id}/suggestions",
    response_model=ClauseSuggestionsOut,
)
async def suggest_clause_improvements(
    clause_id: str,
    request: Request,
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
    openai_client=Depends(get_openai_client),
) -> ClauseSuggestionsOut:
    if not any(c.get("id") == clause_id for c in contract.clauses):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clause not found")

    request_id = _request_id(request)
    svc = _service_or_502(
        session=session,
        llm_client=openai_client,
        operation="suggest_clause_improvements",
        request_id=request_id,
        contract=contract,
    )
    try:
        result = await svc.suggest_clause_improvements(contract=contract, clause_id=clause_id)
    except (OpenAIError, AnalysisLLMError):
        raise _llm_failed(
            operation="suggest_clause_improvements", request_id=request_id, contract=contract
        ) from None

    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clause not found")
    return result


@router.post("/contracts/{contract_id}/missing-clauses", response_model=MissingClausesOut)
async def identify_missing_clauses(
    request: Request,
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
    openai_client=Depends(get_openai_client),
) -> MissingClausesOut:
    request_id = _request_id(request)
    svc = _service_or_502(
        session=session,
        llm_client=openai_client,
        operation="identify_missing_clauses",
        request_id=request_id,
        contract=contract,
    )
    try:
        return await svc.identify_missing_clauses(contract=contract)
    except (OpenAIError, AnalysisLLMError):
        raise _llm_failed(
            operation="identify_missing_clauses", request_id=request_id, contract=contract
        ) from None


@router.post("/contracts/{contract_id}/compliance", response_model=ComplianceOut)
async def assess_compliance(
    request: Request,
    payload: ComplianceIn | None = Body(default=None),
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
    openai_client=Depends(get_openai_client),
) -> ComplianceOut:
    request_id = _request_id(request)
    svc = _service_or_502(
        session=session,
        llm_client=openai_client,
        operation="assess_compliance",
        request_id=request_id,
        contract=contract,
    )
    try:
        return await svc.assess_compliance(
            contract=contract, laws=payload.laws if payload is not None else None
        )
    except (OpenAIError, AnalysisLLMError):
        raise _llm_failed(
            operation="assess_compliance", request_id=request_id, contract=contract
        ) from None


@router.get("", response_model=ContractAnalysisListOut)
async def get_my_analyses(
    limit: int = Query(default=50, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractAnalysisListOut:
    items = await list_user_analyses(session=session, user_id=user.id, limit=limit)
    return ContractAnalysisListOut(
        items=[ContractAnalysisOut.model_validate(a) for a in items], limit=limit
    )


@router.get("/{analysis_id}", response_model=ContractAnalysisOut)
async def get_analysis_by_id(
    analysis_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractAnalysisOut:
    analysis = await get_analysis(session=session, analysis_id=analysis_id)
    if analysis is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    ensure_can_access_analysis(analysis=analysis, user=user)
    return analysis


@router.delete("/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_analysis_by_id(
    analysis_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    analysis = await get_analysis(session=session, analysis_id=analysis_id)
    if analysis is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Analysis not found")
    ensure_can_access_analysis(analysis=analysis, user=user)
    await delete_analysis(session=session, analysis=analysis)
    return None
