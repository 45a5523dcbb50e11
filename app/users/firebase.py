from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

import jwt
from starlette.concurrency import run_in_threadpool

from app.core.settings import get_settings
from app.users.security import InvalidTokenError


@dataclass(frozen=True)
class FirebaseIdentity:
    uid: str
    email: str | None
    name: str | None


class IdentityVerifier(Protocol):
    async def verify(self, token: str) -> FirebaseIdentity: ...


class FirebaseTokenVerifier:
    """
    Verify Firebase ID tokens (RS256) against Google's published signing keys.

    Checks signature, expiry, audience (project id) and issuer, the same checks the
    Firebase Admin SDK performs for `verifyIdToken`.
    """

    def __init__(self, *, project_id: str, jwks_url: str):
        self._project_id = project_id
        self._issuer = f"https://securetoken.google.com/{project_id}"
        self._jwks = jwt.PyJWKClient(jwks_url, cache_keys=True)

    def _verify_sync(self, token: str) -> FirebaseIdentity:
        try:
            signing_key = self._jwks.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self._project_id,
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub", "aud", "iss"]},
            )
        except (jwt.PyJWKClientError, jwt.InvalidTokenError) as exc:
            raise InvalidTokenError("Invalid Firebase ID token") from exc

        uid = claims.get("sub")
        if not isinstance(uid, str) or not uid or len(uid) > 128:
            raise InvalidTokenError("Invalid Firebase ID token")

        email = claims.get("email")
        name = claims.get("name")
        return FirebaseIdentity(
            uid=uid,
            email=email if isinstance(email, str) else None,
            name=name if isinstance(name, str) else None,
        )

    async def verify(self, token: str) -> FirebaseIdentity:
        # PyJWKClient fetches keys with blocking I/O.
        return await run_in_threadpool(self._verify_sync, token)


@lru_cache
def _build_verifier(project_id: str, jwks_url: str) -> FirebaseTokenVerifier:
    # Cached so the JWKS key cache survives across requests.
    return FirebaseTokenVerifier(project_id=project_id, jwks_url=jwks_url)


def get_firebase_verifier() -> IdentityVerifier | None:
    """Dependency provider; None when Firebase sign-in is not configured."""

    settings = get_settings()
    if not settings.firebase_project_id:
        return None
    return _build_verifier(settings.firebase_project_id, settings.firebase_jwks_url)
