from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.core.settings import get_settings
from app.domain.exceptions import AuthenticationError, PermissionDeniedError
from app.users.firebase import IdentityVerifier, get_firebase_verifier
from app.users.models import User
from app.users.security import InvalidTokenError, TokenExpiredError, decode_token
from app.users.service import get_user, issue_tokens, upsert_firebase_user

logger = logging.getLogger("app.auth")

ACCESS_TOKEN_HEADER = "X-Access-Token"
REFRESH_TOKEN_HEADER = "X-Refresh-Token"

_bearer = HTTPBearer(auto_error=False)


async def _user_from_firebase(
    *,
    token: str,
    session: AsyncSession,
    verifier: IdentityVerifier | None,
    response: Response,
    request_id: str | None,
) -> User:
    if verifier is None:
        raise AuthenticationError("Invalid token")

    try:
        identity = await verifier.verify(token)
    except InvalidTokenError:
        logger.info(
            "Firebase token rejected",
            extra={"request_id": request_id, "success": False},
        )
        raise AuthenticationError("Invalid token") from None

    user = await upsert_firebase_user(session=session, identity=identity)

    # Hand the client a first-party token pair so later calls skip Firebase verification.
    tokens = issue_tokens(user=user)
    response.headers[ACCESS_TOKEN_HEADER] = tokens.access_token
    response.headers[REFRESH_TOKEN_HEADER] = tokens.refresh_token

    logger.info(
        "Authenticated via Firebase token",
        extra={"request_id": request_id, "user_id": str(user.id), "success": True},
    )
    return user


async def get_current_user(
    request: Request,
    response: Response,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    session: AsyncSession = Depends(get_session),
    firebase_verifier: IdentityVerifier | None = Depends(get_firebase_verifier),
) -> User:
    """
    Resolve the caller from `Authorization: Bearer <token>`.

    Order: first-party access token, then Firebase ID token (when configured). An
    expired first-party token is rejected outright; it is not retried against Firebase.
    """

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    token = credentials.credentials
    request_id = getattr(request.state, "request_id", None)

    try:
        claims = decode_token(token=token, secret=get_settings().jwt_secret)
    except TokenExpiredError:
        raise AuthenticationError("Token expired") from None
    except InvalidTokenError:
        user = await _user_from_firebase(
            token=token,
            session=session,
            verifier=firebase_verifier,
            response=response,
            request_id=request_id,
        )
    else:
        if claims.type != "access":
            raise AuthenticationError("Invalid token type")
        found = await get_user(session=session, user_id=claims.user_id)
        if found is None or found.uid != claims.uid:
            raise AuthenticationError("User not found")
        user = found

    request.state.user_id = str(user.id)
    return user


def require_role(*roles: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the caller must hold one of `roles`."""

    allowed = frozenset(roles)

    async def _dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError("Insufficient role for this operation")
        return user

    return _dependency
