"""Password hashing and JWT issuing/verification.

Tokens are HS256 JWTs carrying `sub` (user id), `uid`, `role` and `type`
(`access` | `refresh`). Nothing in this module logs tokens or passwords.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

import jwt
from passlib.context import CryptContext

TokenType = Literal["access", "refresh"]

_ALGORITHM = "HS256"

# pbkdf2_sha256 is pure-python in passlib; no native bcrypt dependency required.
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class InvalidTokenError(Exception):
    """Raised when a token cannot be decoded or fails validation."""


class TokenExpiredError(InvalidTokenError):
    """Raised when a token signature is valid but `exp` has passed."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    uid: str
    role: str | None
    type: TokenType


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    return _pwd_context.verify(password, password_hash)


def _encode(
    *,
    user_id: uuid.UUID,
    uid: str,
    role: str | None,
    token_type: TokenType,
    secret: str,
    ttl_seconds: int,
    now: datetime | None,
) -> str:
    issued_at = now or datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": str(user_id),
        "uid": uid,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + timedelta(seconds=ttl_seconds),
        # Unique per token so two tokens minted in the same second still differ.
        "jti": uuid.uuid4().hex,
    }
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def create_access_token(
    *,
    user_id: uuid.UUID,
    uid: str,
    role: str,
    secret: str,
    ttl_seconds: int,
    now: datetime | None = None,
) -> str:
    return _encode(
        user_id=user_id,
        uid=uid,
        role=role,
        token_type="access",
        secret=secret,
        ttl_seconds=ttl_seconds,
        now=now,
    )


def create_refresh_token(
    *,
    user_id: uuid.UUID,
    uid: str,
    secret: str,
    ttl_seconds: int,
    now: datetime | None = None,
) -> str:
    # Role is re-read from the database on refresh, so it is not embedded here.
    return _encode(
        user_id=user_id,
        uid=uid,
        role=None,
        token_type="refresh",
        secret=secret,
        ttl_seconds=ttl_seconds,
        now=now,
    )


def decode_token(*, token: str, secret: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            options={"require": ["exp", "iat", "sub", "type"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError("Invalid token") from exc

    token_type = payload.get("type")
    uid = payload.get("uid")
    if token_type not in ("access", "refresh") or not isinstance(uid, str) or not uid:
        raise InvalidTokenError("Invalid token payload")

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError as exc:
        raise InvalidTokenError("Invalid token payload") from exc

    role = payload.get("role")
    return TokenClaims(
        user_id=user_id,
        uid=uid,
        role=role if isinstance(role, str) else None,
        type=token_type,
    )
