from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.models import Contract
from app.core.db import utcnow
from app.domain.exceptions import BusinessValidationError
from app.sharing.activity import record_activity
from app.sharing.models import ShareLink
from app.users.models import User

# 32 random bytes -> 43 url-safe characters.
_TOKEN_BYTES = 32


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def build_share_url(*, base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/shared/{token}"


def is_share_link_expired(*, link: ShareLink, now: datetime | None = None) -> bool:
    if link.expires_at is None:
        return False
    return _as_utc(link.expires_at) <= _as_utc(now or utcnow())


async def create_share_link(
    *,
    session: AsyncSession,
    contract: Contract,
    user: User,
    expires_at: datetime | None,
) -> ShareLink:
    if expires_at is not None:
        expires_at = _as_utc(expires_at)
        if expires_at <= utcnow():
            raise BusinessValidationError("Share link expiry must be in the future.")

    link = ShareLink(
        id=uuid.uuid4(),
        contract_id=contract.id,
        token=secrets.token_urlsafe(_TOKEN_BYTES),
        created_by=user.id,
        expires_at=expires_at,
        is_active=True,
    )
    session.add(link)
    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=user.id,
        activity_type="shared",
        details={
            "share_link_id": str(link.id),
            "expires_at": expires_at.isoformat() if expires_at else None,
        },
    )
    await session.commit()
    await session.refresh(link)
    return link


async def list_share_links(*, session: AsyncSession, contract_id: uuid.UUID) -> list[ShareLink]:
    stmt = (
        select(ShareLink)
        .where(ShareLink.contract_id == contract_id)
        .order_by(ShareLink.created_at.desc(), ShareLink.id.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def get_share_link_by_token(*, session: AsyncSession, token: str) -> ShareLink | None:
    stmt = select(ShareLink).where(ShareLink.token == token)
    return (await session.execute(stmt)).scalars().first()


async def deactivate_share_link(
    *, session: AsyncSession, link: ShareLink, user: User
) -> ShareLink:
    """Turn a link off. Deactivating an inactive link is a no-op."""

    if not link.is_active:
        return link

    link.is_active = False
    record_activity(
        session=session,
        contract_id=link.contract_id,
        user_id=user.id,
        activity_type="unshared",
        details={"share_link_id": str(link.id)},
    )
    await session.commit()
    await session.refresh(link)
    return link


async def open_shared_contract(*, session: AsyncSession, link: ShareLink) -> Contract | None:
    """Load the contract behind an active link and record the anonymous view."""

    contract = await session.get(Contract, link.contract_id)
    if contract is None:
        return None

    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=None,
        activity_type="shared_view",
        details={"share_link_id": str(link.id)},
    )
    await session.commit()
    await session.refresh(contract)
    return contract
