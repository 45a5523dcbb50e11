from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.contracts.storage import (
    StorageIOError,
    UnsupportedStorageBackendError,
    get_document_storage,
)
from app.core.db import get_session
from app.core.settings import get_settings
from app.domain.exceptions import AuthenticationError
from app.users.deps import get_current_user, require_role
from app.users.firebase import IdentityVerifier, get_firebase_verifier
from app.users.models import User
from app.users.schemas import (
    AuthOut,
    FirebaseSigninIn,
    ProfileUpdate,
    RefreshTokensIn,
    RoleUpdate,
    SigninIn,
    SignupIn,
    TokenPairOut,
    UserOut,
)
from app.users.security import InvalidTokenError
from app.users.service import (
    authenticate,
    create_user,
    delete_user,
    get_user_by_uid,
    issue_tokens,
    refresh_tokens,
    set_role,
    update_profile,
    upsert_firebase_user,
)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("app.auth")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _auth_out(user: User) -> AuthOut:
    return AuthOut(user=UserOut.model_validate(user), tokens=issue_tokens(user=user))


@router.post("/signup", status_code=status.HTTP_201_CREATED, response_model=AuthOut)
async def signup(
    payload: SignupIn,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> AuthOut:
    user = await create_user(
        session=session,
        email=payload.email,
        password=payload.password,
        username=payload.username,
        full_name=payload.full_name,
    )
    logger.info(
        "User registered",
        extra={"request_id": _request_id(request), "user_id": str(user.id), "success": True},
    )
    return _auth_out(user)


@router.post("/signin", response_model=AuthOut)
async def signin(
    payload: SigninIn,
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> AuthOut:
    try:
        user = await authenticate(session=session, login=payload.login, password=payload.password)
    except AuthenticationError:
        # Never log the submitted login; it may be an e-mail address.
        logger.info(
            "Sign-in rejected",
            extra={"request_id": _request_id(request), "success": False},
        )
        raise

    logger.info(
        "User signed in",
        extra={"request_id": _request_id(request), "user_id": str(user.id), "success": True},
    )
    return _auth_out(user)


@router.post("/firebase", response_model=AuthOut)
async def signin_with_firebase(
    payload: FirebaseSigninIn,
    request: Request,
    session: AsyncSession = Depends(get_session),
    firebase_verifier: IdentityVerifier | None = Depends(get_firebase_verifier),
) -> AuthOut:
    """Exchange a Firebase ID token for a first-party token pair (creating the account once)."""

    if firebase_verifier is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Firebase sign-in is not configured",
        )

    try:
        identity = await firebase_verifier.verify(payload.id_token)
    except InvalidTokenError:
        raise AuthenticationError("Invalid Firebase ID token") from None

    user = await upsert_firebase_user(session=session, identity=identity, username=payload.username)
    logger.info(
        "User signed in via Firebase",
        extra={"request_id": _request_id(request), "user_id": str(user.id), "success": True},
    )
    return _auth_out(user)


@router.post("/refresh-tokens", response_model=TokenPairOut)
async def refresh(
    payload: RefreshTokensIn,
    session: AsyncSession = Depends(get_session),
) -> TokenPairOut:
    return await refresh_tokens(session=session, refresh_token=payload.refresh_token)


@router.get("/me", response_model=UserOut)
async def get_me(user: User = Depends(get_current_user)) -> UserOut:
    return user


@router.put("/me", response_model=UserOut)
async def update_me(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    return await update_profile(
        session=session,
        user=user,
        username=payload.username,
        full_name=payload.full_name,
        avatar=payload.avatar,
    )


@router.patch("/role/{uid}", response_model=UserOut)
async def change_role(
    uid: str,
    payload: RoleUpdate,
    request: Request,
    admin: User = Depends(require_role("admin")),
    session: AsyncSession = Depends(get_session),
) -> UserOut:
    target = await get_user_by_uid(session=session, uid=uid)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    updated = await set_role(session=session, user=target, role=payload.role)
    logger.info(
        "User role changed",
        extra={
            "request_id": _request_id(request),
            "user_id": str(admin.id),
            "operation": "set_role",
            "success": True,
        },
    )
    return updated


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_user_by_id(
    user_id: uuid.UUID,
    request: Request,
    admin: User = Depends(require_role("admin")),
    session: AsyncSession = Depends(get_session),
) -> None:
    target = await session.get(User, user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if target.id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete themselves"
        )
    document_keys = await delete_user(session=session, user=target)

    # Rows are gone at this point; a file that cannot be removed is logged, not fatal.
    if document_keys:
        try:
            storage = get_document_storage(settings=get_settings())
            for key in document_keys:
                await storage.delete(key=key)
        except (StorageIOError, UnsupportedStorageBackendError):
            logger.warning(
                "Documents of a deleted user could not be removed",
                extra={"request_id": _request_id(request), "user_id": str(user_id)},
            )

    logger.info(
        "User deleted",
        extra={"request_id": _request_id(request), "user_id": str(user_id), "success": True},
    )
    return None
