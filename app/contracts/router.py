from __future__ import annotations

import logging
import mimetypes

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.deps import get_owned_contract
from app.contracts.models import Contract
from app.contracts.schemas import (
    ContractCreate,
    ContractListItemOut,
    ContractListOut,
    ContractOut,
    ContractSortField,
    ContractStatus,
    ContractStatsOut,
    ContractStatusUpdate,
    ContractType,
    ContractUpdate,
    ContractVersionOut,
    SortOrder,
)
from app.contracts.service import (
    attach_document,
    change_status,
    create_contract,
    delete_contract,
    get_contract_stats,
    list_contracts,
    list_recent_contracts,
    list_versions,
    record_contract_view,
    update_contract,
)
from app.contracts.storage import (
    PayloadTooLargeError,
    StorageIOError,
    UnsupportedStorageBackendError,
    get_document_storage,
)
from app.core.db import get_session
from app.core.settings import get_settings
from app.users.deps import get_current_user
from app.users.models import User

router = APIRouter(prefix="/contracts", tags=["contracts"])
logger = logging.getLogger("app.contracts")

_DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _sniff_mime_type(upload: UploadFile) -> str | None:
    """
    Best-effort MIME detection from magic bytes, then the file extension.
    File names and content are never logged.
    """

    f = upload.file
    try:
        pos = f.tell()
        # Form parsers may leave the cursor at EOF.
        f.seek(0)
        head = f.read(8)
        f.seek(pos)
    except OSError:
        head = b""

    filename = upload.filename or ""
    if head.startswith(b"%PDF-"):
        return "application/pdf"
    if head.startswith(b"PK\x03\x04"):
        # DOCX is a zip container; trust the extension only for zip payloads.
        return _DOCX_MIME if filename.lower().endswith(".docx") else "application/zip"
    if head.startswith(b"\xd0\xcf\x11\xe0"):
        return "application/msword"

    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        return guessed
    return None


def _determine_allowed_mime_type(*, upload: UploadFile, allowed: set[str]) -> str:
    """Pick the MIME type for an upload, preferring sniffed binary formats over client claims."""

    sniffed = (_sniff_mime_type(upload) or "").lower().strip()
    provided = (upload.content_type or "").lower().strip()

    if sniffed in {"application/pdf", _DOCX_MIME, "application/zip", "application/msword"}:
        return sniffed
    if sniffed in allowed:
        return provided if provided in allowed else sniffed
    if provided in allowed:
        return provided
    return provided or sniffed or "application/octet-stream"


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ContractOut)
async def create_contract_route(
    payload: ContractCreate,
    request: Request,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    """Persist a wizard submission as a new contract (version 1)."""

    contract = await create_contract(
        session=session,
        user=user,
        title=payload.title,
        contract_type=payload.type,
        jurisdiction=payload.jurisdiction,
        description=payload.description,
        content=payload.content,
        parties=[p.model_dump(mode="json") for p in payload.parties],
        clauses=[c.model_dump() for c in payload.clauses],
        status=payload.status,
    )
    logger.info(
        "Contract created",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "success": True,
        },
    )
    return contract


@router.get("", response_model=ContractListOut)
async def get_contracts(
    limit: int = Query(default=50, ge=1, le=100),
    cursor: str | None = Query(
        default=None, description="Cursor for pagination (use `next_cursor` from previous response)"
    ),
    status_filter: ContractStatus | None = Query(default=None, alias="status"),
    type_filter: ContractType | None = Query(default=None, alias="type"),
    title: str | None = Query(
        default=None,
        min_length=1,
        description="Filter by title (case-insensitive substring match). Minimum length: 3.",
    ),
    sort: ContractSortField | None = Query(default=None),
    order: SortOrder = Query(default="desc"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractListOut:
    if title is not None and len(title.strip()) < 3:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter 'title' must be at least 3 characters long.",
        )

    try:
        items, next_cursor = await list_contracts(
            session=session,
            user_id=user.id,
            limit=limit,
            cursor=cursor,
            status=status_filter,
            contract_type=type_filter,
            title=title,
            sort=sort,
            order=order,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return ContractListOut(
        items=[ContractListItemOut.model_validate(c) for c in items],
        limit=limit,
        next_cursor=next_cursor,
    )


@router.get("/stats", response_model=ContractStatsOut)
async def get_contract_stats_route(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractStatsOut:
    """Dashboard counters: contracts per status and averages over the latest analyses."""
    return await get_contract_stats(session=session, user_id=user.id)


@router.get("/recent", response_model=list[ContractListItemOut])
async def get_recent_contracts(
    limit: int = Query(default=5, ge=1, le=20),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[ContractListItemOut]:
    return await list_recent_contracts(session=session, user_id=user.id, limit=limit)


@router.get("/{contract_id}", response_model=ContractOut)
async def get_contract_by_id(
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    await record_contract_view(session=session, contract=contract, user=user)
    return contract


@router.patch("/{contract_id}", response_model=ContractOut)
async def update_contract_by_id(
    payload: ContractUpdate,
    request: Request,
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    changes = payload.model_dump(exclude_unset=True, mode="json")
    updated = await update_contract(session=session, contract=contract, user=user, changes=changes)
    logger.info(
        "Contract updated",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "success": True,
        },
    )
    return updated


@router.patch("/{contract_id}/status", response_model=ContractOut)
async def update_contract_status(
    payload: ContractStatusUpdate,
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    return await change_status(session=session, contract=contract, user=user, status=payload.status)


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_contract_by_id(
    request: Request,
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> None:
    # Remove the stored document first so a deleted contract never leaves its file behind.
    if contract.document_path:
        try:
            storage = get_document_storage(settings=get_settings())
            await storage.delete(key=contract.document_path)
        except UnsupportedStorageBackendError as exc:
            raise HTTPException(
                status_code=500, detail="Document storage backend is not supported"
            ) from exc
        except StorageIOError as exc:
            raise HTTPException(status_code=500, detail="Document deletion failed") from exc

    contract_id = contract.id
    await delete_contract(session=session, contract=contract)
    logger.info(
        "Contract deleted",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract_id),
            "success": True,
        },
    )
    return None


@router.get("/{contract_id}/versions", response_model=list[ContractVersionOut])
async def get_contract_versions(
    contract: Contract = Depends(get_owned_contract),
    session: AsyncSession = Depends(get_session),
) -> list[ContractVersionOut]:
    return await list_versions(session=session, contract_id=contract.id)


@router.put("/{contract_id}/document", response_model=ContractOut)
async def upload_contract_document(
    request: Request,
    file: UploadFile = File(description="Signed copy or final document (PDF, DOCX or text)."),
    contract: Contract = Depends(get_owned_contract),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ContractOut:
    settings = get_settings()
    allowed = {m.lower() for m in settings.documents_allowed_mime_types}
    mime_type = _determine_allowed_mime_type(upload=file, allowed=allowed)
    if mime_type not in allowed:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported media type: {mime_type}",
        )

    try:
        storage = get_document_storage(settings=settings)
    except UnsupportedStorageBackendError as exc:
        raise HTTPException(
            status_code=500, detail="Document storage backend is not supported"
        ) from exc

    try:
        stored = await storage.save(
            contract_id=contract.id,
            upload=file,
            max_bytes=settings.max_document_upload_bytes,
        )
    except PayloadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file is too large",
        ) from exc
    except StorageIOError as exc:
        raise HTTPException(status_code=500, detail="File storage failed") from exc

    # Persist metadata after the write; if that fails, remove the orphaned file.
    try:
        previous_key = await attach_document(
            session=session,
            contract=contract,
            user=user,
            stored_file=stored,
            mime_type=mime_type,
        )
    except Exception:
        await storage.delete(key=stored.key)
        raise

    if previous_key:
        try:
            await storage.delete(key=previous_key)
        except StorageIOError:
            logger.warning(
                "Replaced contract document could not be removed",
                extra={"request_id": _request_id(request), "contract_id": str(contract.id)},
            )

    logger.info(
        "Contract document uploaded",
        extra={
            "request_id": _request_id(request),
            "user_id": str(user.id),
            "contract_id": str(contract.id),
            "success": True,
        },
    )
    return contract


@router.get("/{contract_id}/document", response_class=FileResponse)
async def download_contract_document(
    contract: Contract = Depends(get_owned_contract),
) -> FileResponse:
    if not contract.document_path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Contract has no document"
        )

    try:
        storage = get_document_storage(settings=get_settings())
        path = storage.resolve(key=contract.document_path)
    except UnsupportedStorageBackendError as exc:
        raise HTTPException(
            status_code=500, detail="Document storage backend is not supported"
        ) from exc
    except StorageIOError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Contract document is missing"
        ) from exc

    media_type = contract.document_mime_type or "application/octet-stream"
    extension = mimetypes.guess_extension(media_type) or ""
    return FileResponse(path, media_type=media_type, filename=f"{contract.lexi_cert_id}{extension}")
