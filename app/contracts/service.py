from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Select, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.models import ContractAnalysis
from app.contracts.cursor_pagination import (
    decode_contract_cursor,
    encode_contract_cursor,
    format_cursor_value,
    parse_cursor_value,
)
from app.contracts.models import Contract, ContractVersion
from app.contracts.storage import StoredFile
from app.core.db import utcnow
from app.domain.exceptions import BusinessValidationError, PermissionDeniedError
from app.sharing.activity import record_activity
from app.sharing.models import DocumentActivity, ShareLink
from app.users.models import User

# Allowed status changes; anything not listed (other than a no-op) is rejected.
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "draft": frozenset({"pending", "cancelled"}),
    "pending": frozenset({"draft", "signed", "cancelled"}),
    "signed": frozenset({"expired"}),
    "expired": frozenset(),
    "cancelled": frozenset(),
}
LOCKED_STATUSES = frozenset({"signed", "cancelled"})

# Edits to these fields produce a new contract version.
_VERSIONED_FIELDS = ("content", "clauses")


def _sort_column(sort: str):
    sort_map = {
        "created_at": Contract.created_at,
        "updated_at": Contract.updated_at,
        "title": Contract.title,
    }
    return sort_map.get(sort, Contract.created_at)


def normalize_clauses(clauses: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Return clauses with ids assigned and whitespace-trimmed.

    Missing ids become `clause-<n>` (1-based position, skipping ids already in use).
    Duplicate ids are rejected.
    """

    taken = {str(c["id"]).strip() for c in clauses if c.get("id")}
    if len(taken) != len([c for c in clauses if c.get("id")]):
        raise BusinessValidationError("Clause ids must be unique within a contract.")

    out: list[dict[str, Any]] = []
    for position, clause in enumerate(clauses, start=1):
        clause_id = str(clause.get("id") or "").strip()
        if not clause_id:
            n = position
            while f"clause-{n}" in taken:
                n += 1
            clause_id = f"clause-{n}"
            taken.add(clause_id)
        out.append(
            {
                "id": clause_id,
                "title": str(clause["title"]).strip(),
                "content": str(clause["content"]),
                "explanation": clause.get("explanation"),
            }
        )
    return out


def ensure_contract_owner(*, contract: Contract, user: User) -> None:
    if contract.user_id != user.id:
        raise PermissionDeniedError("You do not have access to this contract")


async def get_contract(*, session: AsyncSession, contract_id: uuid.UUID) -> Contract | None:
    return await session.get(Contract, contract_id)


async def create_contract(
    *,
    session: AsyncSession,
    user: User,
    title: str,
    contract_type: str,
    jurisdiction: str,
    description: str | None,
    content: str,
    parties: list[dict[str, Any]],
    clauses: list[dict[str, Any]],
    status: str = "draft",
    template_id: uuid.UUID | None = None,
) -> Contract:
    if not parties:
        raise BusinessValidationError("A contract needs at least one party.")

    normalized_clauses = normalize_clauses(clauses)
    contract = Contract(
        id=uuid.uuid4(),
        user_id=user.id,
        title=title.strip(),
        type=contract_type,
        status=status,
        jurisdiction=jurisdiction.strip(),
        description=description,
        content=content,
        parties=parties,
        clauses=normalized_clauses,
        template_id=template_id,
    )
    session.add(contract)
    # Dependent rows reference the contract; make sure its INSERT goes first.
    await session.flush()
    session.add(
        ContractVersion(
            contract_id=contract.id,
            version=1,
            content=content,
            clauses=normalized_clauses,
            changes=["created"],
            created_by=user.id,
        )
    )
    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=user.id,
        activity_type="created",
        details={"template_id": str(template_id)} if template_id else {},
    )
    await session.commit()
    await session.refresh(contract)
    return contract


def _apply_contract_filters(
    *,
    stmt: Select[tuple[Contract]],
    status: str | None,
    contract_type: str | None,
    title: str | None,
) -> Select[tuple[Contract]]:
    if status:
        stmt = stmt.where(Contract.status == status)
    if contract_type:
        stmt = stmt.where(Contract.type == contract_type)
    if title:
        normalized = title.strip().lower()
        if normalized:
            stmt = stmt.where(func.lower(Contract.title).contains(normalized))
    return stmt


def _apply_contract_cursor(
    *,
    stmt: Select[tuple[Contract]],
    sort: str,
    order: str,
    cursor: str | None,
    filters: dict[str, str | None],
) -> Select[tuple[Contract]]:
    if not cursor:
        return stmt

    decoded = decode_contract_cursor(cursor=cursor, sort=sort, order=order, filters=filters)
    sort_col = _sort_column(sort)
    last_value = parse_cursor_value(sort=sort, raw=decoded.last_value)
    last_id = decoded.last_id

    if order == "desc":
        return stmt.where(
            or_(
                sort_col < last_value,
                and_(sort_col == last_value, Contract.id < last_id),
            )
        )
    return stmt.where(
        or_(
            sort_col > last_value,
            and_(sort_col == last_value, Contract.id > last_id),
        )
    )


async def list_contracts(
    *,
    session: AsyncSession,
    user_id: uuid.UUID,
    limit: int,
    cursor: str | None,
    status: str | None,
    contract_type: str | None,
    title: str | None,
    sort: str | None,
    order: str,
) -> tuple[list[Contract], str | None]:
    sort = sort or "created_at"
    filters = {"status": status, "type": contract_type, "title": title}
    sort_col = _sort_column(sort)

    stmt = select(Contract).where(Contract.user_id == user_id)
    stmt = _apply_contract_filters(
        stmt=stmt, status=status, contract_type=contract_type, title=title
    )
    if order == "desc":
        stmt = stmt.order_by(sort_col.desc(), Contract.id.desc())
    else:
        stmt = stmt.order_by(sort_col.asc(), Contract.id.asc())
    stmt = _apply_contract_cursor(
        stmt=stmt, sort=sort, order=order, cursor=cursor, filters=filters
    )
    stmt = stmt.limit(limit + 1)

    fetched = (await session.execute(stmt)).scalars().all()
    has_more = len(fetched) > limit
    items = list(fetched[:limit])

    next_cursor: str | None = None
    if has_more and items:
        last = items[-1]
        next_cursor = encode_contract_cursor(
            sort=sort,
            order=order,
            filters=filters,
            last_id=last.id,
            last_value=format_cursor_value(value=getattr(last, sort)),
        )

    return items, next_cursor


async def list_recent_contracts(
    *, session: AsyncSession, user_id: uuid.UUID, limit: int
) -> list[Contract]:
    stmt = (
        select(Contract)
        .where(Contract.user_id == user_id)
        .order_by(Contract.updated_at.desc(), Contract.id.desc())
        .limit(limit)
    )
    return list((await session.execute(stmt)).scalars().all())


_STATUSES = ("draft", "pending", "signed", "expired", "cancelled")


async def get_contract_stats(*, session: AsyncSession, user_id: uuid.UUID) -> dict[str, Any]:
    status_stmt = (
        select(Contract.status, func.count())
        .where(Contract.user_id == user_id)
        .group_by(Contract.status)
    )
    by_status = {s: 0 for s in _STATUSES}
    for status_value, count in (await session.execute(status_stmt)).all():
        by_status[status_value] = int(count)

    # Only the most recent analysis of each contract counts towards the averages.
    latest = (
        select(
            ContractAnalysis.contract_id,
            func.max(ContractAnalysis.created_at).label("created_at"),
        )
        .join(Contract, Contract.id == ContractAnalysis.contract_id)
        .where(Contract.user_id == user_id)
        .group_by(ContractAnalysis.contract_id)
        .subquery()
    )
    analysis_stmt = (
        select(
            func.count(func.distinct(ContractAnalysis.contract_id)),
            func.avg(ContractAnalysis.risk_score),
            func.avg(ContractAnalysis.completeness),
        )
        .select_from(ContractAnalysis)
        .join(
            latest,
            and_(
                ContractAnalysis.contract_id == latest.c.contract_id,
                ContractAnalysis.created_at == latest.c.created_at,
            ),
        )
    )
    analyzed, avg_risk, avg_completeness = (await session.execute(analysis_stmt)).one()

    return {
        "total_contracts": sum(by_status.values()),
        "by_status": by_status,
        "analyzed_contracts": int(analyzed or 0),
        "average_risk_score": round(float(avg_risk), 1) if avg_risk is not None else None,
        "average_completeness": (
            round(float(avg_completeness), 1) if avg_completeness is not None else None
        ),
    }


async def _next_version_number(*, session: AsyncSession, contract_id: uuid.UUID) -> int:
    stmt = select(func.max(ContractVersion.version)).where(
        ContractVersion.contract_id == contract_id
    )
    current = (await session.execute(stmt)).scalar_one_or_none()
    return int(current or 0) + 1


async def update_contract(
    *,
    session: AsyncSession,
    contract: Contract,
    user: User,
    changes: dict[str, Any],
) -> Contract:
    """
    Apply a partial update.

    `changes` holds only the fields the client sent. Editing `content` or `clauses`
    snapshots a new version listing every field that actually changed.
    """

    if contract.status in LOCKED_STATUSES:
        raise BusinessValidationError(f"A {contract.status} contract cannot be edited.")

    if "clauses" in changes and changes["clauses"] is not None:
        changes = {**changes, "clauses": normalize_clauses(changes["clauses"])}
    if "parties" in changes and not changes["parties"]:
        raise BusinessValidationError("A contract needs at least one party.")

    changed: list[str] = []
    for field in ("title", "type", "jurisdiction", "description", "content", "parties", "clauses"):
        if field not in changes:
            continue
        value = changes[field]
        if value is None and field != "description":
            continue
        if getattr(contract, field) != value:
            setattr(contract, field, value)
            changed.append(field)

    if not changed:
        return contract

    if any(field in changed for field in _VERSIONED_FIELDS):
        session.add(
            ContractVersion(
                contract_id=contract.id,
                version=await _next_version_number(session=session, contract_id=contract.id),
                content=contract.content,
                clauses=contract.clauses,
                changes=changed,
                created_by=user.id,
            )
        )

    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=user.id,
        activity_type="updated",
        details={"fields": changed},
    )
    await session.commit()
    await session.refresh(contract)
    return contract


async def change_status(
    *,
    session: AsyncSession,
    contract: Contract,
    user: User,
    status: str,
) -> Contract:
    current = contract.status
    if status == current:
        return contract

    if status not in STATUS_TRANSITIONS.get(current, frozenset()):
        raise BusinessValidationError(f"Cannot change contract status from {current} to {status}.")

    contract.status = status
    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=user.id,
        activity_type="status_changed",
        details={"from": current, "to": status},
    )
    await session.commit()
    await session.refresh(contract)
    return contract


async def record_contract_view(*, session: AsyncSession, contract: Contract, user: User) -> None:
    record_activity(
        session=session, contract_id=contract.id, user_id=user.id, activity_type="viewed"
    )
    await session.commit()


async def list_versions(
    *, session: AsyncSession, contract_id: uuid.UUID
) -> list[ContractVersion]:
    stmt = (
        select(ContractVersion)
        .where(ContractVersion.contract_id == contract_id)
        .order_by(ContractVersion.version.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


async def attach_document(
    *,
    session: AsyncSession,
    contract: Contract,
    user: User,
    stored_file: StoredFile,
    mime_type: str,
) -> str | None:
    """Point the contract at a newly stored document; return the replaced storage key, if any."""

    previous_key = contract.document_path
    contract.document_path = stored_file.key
    contract.document_mime_type = mime_type
    contract.document_size_bytes = stored_file.size_bytes
    contract.document_sha256 = stored_file.sha256_hex
    contract.document_uploaded_at = utcnow()

    record_activity(
        session=session,
        contract_id=contract.id,
        user_id=user.id,
        activity_type="document_uploaded",
        details={
            "mime_type": mime_type,
            "size_bytes": stored_file.size_bytes,
            "replaced": previous_key is not None,
        },
    )
    await session.commit()
    await session.refresh(contract)
    return previous_key


# Deleted explicitly; SQLite does not enforce the ON DELETE CASCADE foreign keys.
_CONTRACT_DEPENDENTS = (ContractVersion, ContractAnalysis, ShareLink, DocumentActivity)


async def delete_contract(*, session: AsyncSession, contract: Contract) -> None:
    for model in _CONTRACT_DEPENDENTS:
        await session.execute(delete(model).where(model.contract_id == contract.id))
    await session.delete(contract)
    await session.commit()


async def delete_user_contracts(*, session: AsyncSession, user_id: uuid.UUID) -> list[str]:
    """
    Delete every contract the user owns, with its dependents, without committing.

    Returns the storage keys of their documents; the caller removes the files once
    the transaction has committed.
    """

    owned = select(Contract.id).where(Contract.user_id == user_id)
    keys_stmt = select(Contract.document_path).where(
        Contract.user_id == user_id, Contract.document_path.is_not(None)
    )
    document_keys = [key for key in (await session.execute(keys_stmt)).scalars().all() if key]

    for model in _CONTRACT_DEPENDENTS:
        await session.execute(
            delete(model)
            .where(model.contract_id.in_(owned))
            .execution_options(synchronize_session=False)
        )
    await session.execute(
        delete(Contract)
        .where(Contract.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return document_keys
