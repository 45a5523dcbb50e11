from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.sharing.models import ACTIVITY_TYPES, DocumentActivity


def record_activity(
    *,
    session: AsyncSession,
    contract_id: uuid.UUID,
    user_id: uuid.UUID | None,
    activity_type: str,
    details: dict[str, Any] | None = None,
) -> DocumentActivity:
    """Stage an activity row; the caller's commit persists it with the change it describes."""

    if activity_type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {activity_type}")

    activity = DocumentActivity(
        contract_id=contract_id,
        user_id=user_id,
        activity_type=activity_type,
        details=details or {},
    )
    session.add(activity)
    return activity


async def list_activity(
    *,
    session: AsyncSession,
    contract_id: uuid.UUID,
    limit: int,
) -> list[DocumentActivity]:
    stmt = (
        select(DocumentActivity)
        .where(DocumentActivity.contract_id == contract_id)
        .order_by(DocumentActivity.created_at.desc(), DocumentActivity.id.desc())
        .limit(limit)
    )
    return list((await session.execute(stmt)).scalars().all())
