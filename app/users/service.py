from __future__ import annotations

import base64
import re
import secrets
import uuid

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.models import ContractAnalysis
from app.contracts.models import Contract, ContractVersion
from app.contracts.service import delete_user_contracts
from app.core.settings import get_settings
from app.domain.exceptions import AuthenticationError, BusinessValidationError
from app.sharing.models import DocumentActivity, ShareLink
from app.templates.models import Template
from app.users.firebase import FirebaseIdentity
from app.users.models import USER_ROLES, User
from app.users.schemas import TokenPairOut
from app.users.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

_INVALID_CREDENTIALS = "Invalid username/email or password"
_USERNAME_SANITIZE = re.compile(r"[^a-z0-9_.-]+")


def _generate_uid() -> str:
    # "usr_" + 16 chars of lowercase Base32 (80 bits of randomness).
    token = base64.b32encode(secrets.token_bytes(10)).decode("ascii").lower()
    return f"usr_{token}"


async def _uid_exists(*, session: AsyncSession, uid: str) -> bool:
    stmt = select(User.id).where(User.uid == uid).limit(1)
    return (await session.execute(stmt)).first() is not None


async def _generate_unique_uid(*, session: AsyncSession) -> str:
    for _ in range(5):
        candidate = _generate_uid()
        if not await _uid_exists(session=session, uid=candidate):
            return candidate
    raise BusinessValidationError("Unable to create account at this time.")


async def _username_exists(*, session: AsyncSession, username: str) -> bool:
    stmt = select(User.id).where(func.lower(User.username) == username.lower()).limit(1)
    return (await session.execute(stmt)).first() is not None


async def _email_exists(*, session: AsyncSession, email: str) -> bool:
    stmt = select(User.id).where(User.email == email).limit(1)
    return (await session.execute(stmt)).first() is not None


async def get_user(*, session: AsyncSession, user_id: uuid.UUID) -> User | None:
    return await session.get(User, user_id)


async def get_user_by_uid(*, session: AsyncSession, uid: str) -> User | None:
    stmt = select(User).where(User.uid == uid)
    return (await session.execute(stmt)).scalars().first()


async def create_user(
    *,
    session: AsyncSession,
    email: str,
    password: str,
    username: str,
    full_name: str,
) -> User:
    normalized_email = email.strip().lower()
    normalized_username = username.strip()

    if await _email_exists(session=session, email=normalized_email):
        raise BusinessValidationError("Email is already registered.")
    if await _username_exists(session=session, username=normalized_username):
        raise BusinessValidationError("Username is already taken.")

    user = User(
        uid=await _generate_unique_uid(session=session),
        email=normalized_email,
        username=normalized_username,
        full_name=full_name.strip(),
        role="user",
        password_hash=hash_password(password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        # Concurrent signup with the same email/username.
        await session.rollback()
        raise BusinessValidationError("Email or username is already registered.") from None

    await session.refresh(user)
    return user


async def authenticate(*, session: AsyncSession, login: str, password: str) -> User:
    """
    Resolve a user by username or e-mail and check the password.

    Unknown accounts and wrong passwords produce the same error so callers cannot tell
    which usernames exist.
    """

    normalized = login.strip()
    stmt = select(User).where(
        or_(
            func.lower(User.username) == normalized.lower(),
            User.email == normalized.lower(),
        )
    )
    user = (await session.execute(stmt)).scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError(_INVALID_CREDENTIALS)
    return user


def issue_tokens(*, user: User) -> TokenPairOut:
    settings = get_settings()
    access = create_access_token(
        user_id=user.id,
        uid=user.uid,
        role=user.role,
        secret=settings.jwt_secret,
        ttl_seconds=settings.jwt_access_token_ttl_seconds,
    )
    refresh = create_refresh_token(
        user_id=user.id,
        uid=user.uid,
        secret=settings.jwt_secret,
        ttl_seconds=settings.jwt_refresh_token_ttl_seconds,
    )
    return TokenPairOut(
        access_token=access,
        refresh_token=refresh,
        expires_in=settings.jwt_access_token_ttl_seconds,
    )


async def refresh_tokens(*, session: AsyncSession, refresh_token: str) -> TokenPairOut:
    settings = get_settings()
    try:
        claims = decode_token(token=refresh_token, secret=settings.jwt_secret)
    except InvalidTokenError as exc:
        raise AuthenticationError(str(exc)) from None

    if claims.type != "refresh":
        raise AuthenticationError("Invalid token type")

    user = await get_user(session=session, user_id=claims.user_id)
    if user is None or user.uid != claims.uid:
        raise AuthenticationError("User no longer exists")

    return issue_tokens(user=user)


async def update_profile(
    *,
    session: AsyncSession,
    user: User,
    username: str | None,
    full_name: str | None,
    avatar: str | None,
) -> User:
    if username is not None:
        normalized = username.strip()
        if normalized.lower() != user.username.lower() and await _username_exists(
            session=session, username=normalized
        ):
            raise BusinessValidationError("Username is already taken.")
        user.username = normalized
    if full_name is not None:
        user.full_name = full_name.strip()
    if avatar is not None:
        user.avatar = avatar or None

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise BusinessValidationError("Username is already taken.") from None

    await session.refresh(user)
    return user


async def set_role(*, session: AsyncSession, user: User, role: str) -> User:
    if role not in USER_ROLES:
        raise BusinessValidationError("Invalid role.")
    user.role = role
    await session.commit()
    await session.refresh(user)
    return user


async def delete_user(*, session: AsyncSession, user: User) -> list[str]:
    """
    Delete the account and everything it owns in one transaction.

    Returns the storage keys of the deleted contracts' documents.
    """

    document_keys = await delete_user_contracts(session=session, user_id=user.id)

    owned_templates = select(Template.id).where(Template.user_id == user.id)
    statements = (
        update(Contract)
        .where(Contract.template_id.in_(owned_templates))
        .values(template_id=None),
        delete(Template).where(Template.user_id == user.id),
        delete(ContractAnalysis).where(ContractAnalysis.user_id == user.id),
        delete(ShareLink).where(ShareLink.created_by == user.id),
        update(ContractVersion)
        .where(ContractVersion.created_by == user.id)
        .values(created_by=None),
        update(DocumentActivity)
        .where(DocumentActivity.user_id == user.id)
        .values(user_id=None),
    )
    for stmt in statements:
        await session.execute(stmt.execution_options(synchronize_session=False))

    await session.delete(user)
    await session.commit()
    return document_keys


def _username_candidate(*, identity: FirebaseIdentity, requested: str | None) -> str:
    if requested:
        return requested.strip()
    source = identity.email.split("@", 1)[0] if identity.email else identity.uid
    base = _USERNAME_SANITIZE.sub("", source.lower())[:40]
    if len(base) < 3:
        base = f"user{base}"
    return base


async def _available_username(*, session: AsyncSession, base: str, strict: bool) -> str:
    if not await _username_exists(session=session, username=base):
        return base
    if strict:
        raise BusinessValidationError("Username is already taken.")
    for _ in range(5):
        candidate = f"{base}-{secrets.token_hex(3)}"
        if not await _username_exists(session=session, username=candidate):
            return candidate
    raise BusinessValidationError("Unable to create account at this time.")


async def upsert_firebase_user(
    *,
    session: AsyncSession,
    identity: FirebaseIdentity,
    username: str | None = None,
) -> User:
    """
    Return the account linked to a Firebase identity, creating it on first sign-in.

    The Firebase UID becomes the account `uid`. Accounts created this way have no
    password and can only sign in through Firebase.
    """

    existing = await get_user_by_uid(session=session, uid=identity.uid)
    if existing is not None:
        return existing

    if not identity.email:
        raise BusinessValidationError("Firebase account has no e-mail address.")

    email = identity.email.strip().lower()
    if await _email_exists(session=session, email=email):
        raise BusinessValidationError("Email is already registered.")

    base = _username_candidate(identity=identity, requested=username)
    chosen = await _available_username(session=session, base=base, strict=username is not None)

    user = User(
        uid=identity.uid,
        email=email,
        username=chosen,
        full_name=(identity.name or chosen).strip()[:255],
        role="user",
        password_hash=None,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        # Another request created the same Firebase account concurrently.
        raced = await get_user_by_uid(session=session, uid=identity.uid)
        if raced is not None:
            return raced
        raise BusinessValidationError("Email or username is already registered.") from None

    await session.refresh(user)
    return user
