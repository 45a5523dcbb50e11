from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.deps import get_owned_contract
from app.contracts.models import Contract
from app.contracts.service import ensure_contract_owner, get_contract
from app.core.db import get_session
from app.core.settings import get_settings
from app.sharing.activity import list_activity
from app.sharing.models import ShareLink
from app.sharing.schemas import (
    ActivityListOut,
    ActivityOut,
    SharedContractOut,
    ShareLinkCreate,
    ShareLinkOut,
)
from app.sharing.service import (
    build_share_url,
    create_share_link,
    deactivate_share_link,
    get_share_link_by_token,
    is_share_link_expired,
    list_share_links,
    open_shared_contract,
)
from app.users.deps import get_current_user
from app.users.models import User

router = APIRouter(tags=["sharing"])
logger = logging.getLogger("app.sharing")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _to_out(link: ShareLink) -> ShareLinkOut:
    return ShareLinkOut(
        id=link.id,
        contract_id=link.contract_id,
        token=link.token,
        url=build_share_url(base_url=get_settings().share_link_base_url, token=link.token),
        expires_at=link.expires_at,
        is_active=link.is_active,
        created_at=link.created_at,
    )


@router.post(
    "/contracts/{contract_id}/share-links",
    status_code=status.HTTP_201_CREATED,
    response_model=ShareLinkOut,
)
async def create_contract_share_link(
    request: Request,
    payload: ShareLinkCreate | None = Body(default=None),
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ShareLinkOut:
    link = await create_share_link(
        session=session,
        contract=contract,
        user=user,
        expires_at=payload.expires_at if payload is not None else None,
    )
    logger.info(
        "Share link created",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "share_link_id": str(link.id),
        },
    )
    return _to_out(link)


@router.get("/contracts/{contract_id}/share-links", response_model=list[ShareLinkOut])
async def get_contract_share_links(
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
) -> list[ShareLinkOut]:
    links = await list_share_links(session=session, contract_id=contract.id)
    return [_to_out(link) for link in links]


@router.post("/share-links/{token}/deactivate", response_model=ShareLinkOut)
async def deactivate_contract_share_link(
    token: str,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ShareLinkOut:
    link = await get_share_link_by_token(session=session, token=token)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found")

    contract = await get_contract(session=session, contract_id=link.contract_id)
    if contract is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found")
    ensure_contract_owner(contract=contract, user=user)

    link = await deactivate_share_link(session=session, link=link, user=user)
    logger.info(
        "Share link deactivated",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "share_link_id": str(link.id),
        },
    )
    return _to_out(link)


@router.get("/shared/{token}", response_model=SharedContractOut)
async def view_shared_contract(
    token: str,
    session: AsyncSession = Depends(get_session),
) -> SharedContractOut:
    """
    Public, unauthenticated read-only view of a shared contract.

    Unknown and deactivated links are indistinguishable (404); expired links answer 410.
    """

    link = await get_share_link_by_token(session=session, token=token)
    if link is None or not link.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found")
    if is_share_link_expired(link=link):
        raise HTTPException(status_code=status.HTTP_410_GONE, detail="Share link has expired")

    contract = await open_shared_contract(session=session, link=link)
    if contract is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found")
    return contract


@router.get("/contracts/{contract_id}/activity", response_model=ActivityListOut)
async def get_contract_activity(
    limit: int = Query(default=50, ge=1, le=200),
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
) -> ActivityListOut:
    items = await list_activity(session=session, contract_id=contract.id, limit=limit)
    return ActivityListOut(items=[ActivityOut.model_validate(a) for a in items], limit=limit)
