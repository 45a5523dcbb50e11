from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.schemas import ContractOut, ContractType
from app.core.db import get_session
from app.templates.models import Template
from app.templates.schemas import (
    TemplateCreate,
    TemplateInstantiate,
    TemplateOut,
    TemplateUpdate,
)
from app.templates.service import (
    can_view_template,
    create_template,
    delete_template,
    get_template,
    instantiate_template,
    list_templates,
    update_template,
)
from app.users.deps import get_current_user
from app.users.models import User

router = APIRouter(prefix="/templates", tags=["templates"])


async def _get_visible_template(
    *, session: AsyncSession, template_id: uuid.UUID, user: User
) -> Template:
    template = await get_template(session=session, template_id=template_id)
    # Private templates of other users are reported as missing, not forbidden.
    if template is None or not can_view_template(template=template, user=user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


@router.get("", response_model=list[TemplateOut])
async def get_templates(
    type_filter: ContractType | None = Query(default=None, alias="type"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[TemplateOut]:
    return await list_templates(session=session, user=user, template_type=type_filter)


@router.get("/{template_id}", response_model=TemplateOut)
async def get_template_by_id(
    template_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TemplateOut:
    return await _get_visible_template(session=session, template_id=template_id, user=user)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TemplateOut)
async def create_template_route(
    payload: TemplateCreate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TemplateOut:
    return await create_template(
        session=session,
        user=user,
        title=payload.title,
        template_type=payload.type,
        description=payload.description,
        content=payload.content,
        clauses=[c.model_dump() for c in payload.clauses],
        is_public=payload.is_public,
    )


@router.put("/{template_id}", response_model=TemplateOut)
async def update_template_by_id(
    template_id: uuid.UUID,
    payload: TemplateUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> TemplateOut:
    template = await _get_visible_template(session=session, template_id=template_id, user=user)
    return await update_template(
        session=session,
        template=template,
        user=user,
        changes=payload.model_dump(exclude_unset=True),
    )


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_template_by_id(
    template_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    template = await _get_visible_template(session=session, template_id=template_id, user=user)
    await delete_template(session=session, template=template, user=user)
    return None


@router.post(
    "/{template_id}/contracts",
    status_code=status.HTTP_201_CREATED,
    response_model=ContractOut,
)
async def create_contract_from_template(
    template_id: uuid.UUID,
    payload: TemplateInstantiate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    template = await _get_visible_template(session=session, template_id=template_id, user=user)
    return await instantiate_template(
        session=session,
        template=template,
        user=user,
        title=payload.title,
        jurisdiction=payload.jurisdiction,
        parties=[p.model_dump(mode="json") for p in payload.parties],
    )
