from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.models import Contract
from app.contracts.service import ensure_contract_owner, get_contract
from app.core.db import get_session
from app.users.deps import get_current_user
from app.users.models import User


async def get_owned_contract(
    contract_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Contract:
    """Load `{contract_id}` from the path: 404 when missing, 403 when owned by someone else."""

    contract = await get_contract(session=session, contract_id=contract_id)
    if contract is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contract not found")
    ensure_contract_owner(contract=contract, user=user)
    return contract
