from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.models import Contract
from app.contracts.service import create_contract, normalize_clauses
from app.domain.exceptions import PermissionDeniedError
from app.templates.models import Template
from app.users.models import User


def can_view_template(*, template: Template, user: User) -> bool:
    return template.is_public or template.user_id == user.id or user.is_admin


def ensure_can_manage_template(*, template: Template, user: User) -> None:
    """Owners manage their own templates; admins may also manage public and system ones."""

    if template.user_id == user.id:
        return
    if user.is_admin and (template.is_public or template.user_id is None):
        return
    raise PermissionDeniedError("You cannot modify this template")


def _ensure_can_publish(*, user: User, is_public: bool) -> None:
    if is_public and not user.is_admin:
        raise PermissionDeniedError("Only administrators can publish templates")


async def get_template(*, session: AsyncSession, template_id: uuid.UUID) -> Template | None:
    return await session.get(Template, template_id)


async def list_templates(
    *,
    session: AsyncSession,
    user: User,
    template_type: str | None,
) -> list[Template]:
    stmt = select(Template).where(or_(Template.is_public.is_(True), Template.user_id == user.id))
    if template_type:
        stmt = stmt.where(Template.type == template_type)
    stmt = stmt.order_by(Template.title.asc(), Template.id.asc())
    return list((await session.execute(stmt)).scalars().all())


async def create_template(
    *,
    session: AsyncSession,
    user: User,
    title: str,
    template_type: str,
    description: str,
    content: str,
    clauses: list[dict[str, Any]],
    is_public: bool,
) -> Template:
    _ensure_can_publish(user=user, is_public=is_public)

    template = Template(
        user_id=user.id,
        title=title.strip(),
        type=template_type,
        description=description,
        content=content,
        clauses=normalize_clauses(clauses),
        is_public=is_public,
    )
    session.add(template)
    await session.commit()
    await session.refresh(template)
    return template


async def update_template(
    *,
    session: AsyncSession,
    template: Template,
    user: User,
    changes: dict[str, Any],
) -> Template:
    ensure_can_manage_template(template=template, user=user)
    if changes.get("is_public") is not None and changes["is_public"] != template.is_public:
        # Unpublishing is an admin action too.
        _ensure_can_publish(user=user, is_public=True)

    if changes.get("clauses") is not None:
        template.clauses = normalize_clauses(changes["clauses"])
    for field in ("title", "type", "description", "content", "is_public"):
        value = changes.get(field)
        if value is not None:
            setattr(template, field, value)

    await session.commit()
    await session.refresh(template)
    return template


async def delete_template(*, session: AsyncSession, template: Template, user: User) -> None:
    ensure_can_manage_template(template=template, user=user)
    await session.delete(template)
    await session.commit()


async def instantiate_template(
    *,
    session: AsyncSession,
    template: Template,
    user: User,
    title: str,
    jurisdiction: str,
    parties: list[dict[str, Any]],
) -> Contract:
    """Start a draft contract from a template's text and clauses."""

    return await create_contract(
        session=session,
        user=user,
        title=title,
        contract_type=template.type,
        jurisdiction=jurisdiction,
        description=template.description or None,
        content=template.content,
        parties=parties,
        clauses=[dict(c) for c in template.clauses],
        status="draft",
        template_id=template.id,
    )
