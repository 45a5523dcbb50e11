"""Integration tests: Firebase ID tokens as a fallback credential."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.users.deps import ACCESS_TOKEN_HEADER, REFRESH_TOKEN_HEADER
from app.users.firebase import FirebaseIdentity, get_firebase_verifier
from app.users.security import InvalidTokenError
from tests.users._helpers import signup


class _FakeFirebaseVerifier:
    """Accepts the tokens it was given; everything else is an invalid Firebase token."""

    def __init__(self, identities: dict[str, FirebaseIdentity]):
        self._identities = identities
        self.calls: list[str] = []

    async def verify(self, token: str) -> FirebaseIdentity:
        self.calls.append(token)
        identity = self._identities.get(token)
        if identity is None:
            raise InvalidTokenError("Invalid Firebase ID token")
        return identity


@pytest.fixture
def verifier() -> _FakeFirebaseVerifier:
    return _FakeFirebaseVerifier(
        {
            "fb-token-priya": FirebaseIdentity(
                uid="firebase-uid-priya", email="Priya@Example.com", name="Priya Shah"
            ),
            "fb-token-no-email": FirebaseIdentity(uid="firebase-uid-anon", email=None, name=None),
        }
    )


@pytest.fixture
def firebase_client(verifier: _FakeFirebaseVerifier) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_firebase_verifier] = lambda: verifier
    with TestClient(app) as c:
        yield c


def test_firebase_token_creates_account_and_returns_first_party_tokens(
    firebase_client: TestClient,
) -> None:
    res = firebase_client.get("/auth/me", headers={"Authorization": "Bearer fb-token-priya"})
    assert res.status_code == 200, res.text

    user = res.json()
    assert user["uid"] == "firebase-uid-priya"
    assert user["email"] == "priya@example.com"
    assert user["full_name"] == "Priya Shah"
    assert user["username"] == "priya"

    # The response carries a LexiDraft token pair so later calls skip Firebase.
    access = res.headers[ACCESS_TOKEN_HEADER]
    assert res.headers[REFRESH_TOKEN_HEADER]

    again = firebase_client.get("/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert again.status_code == 200
    assert again.json()["id"] == user["id"]
    assert ACCESS_TOKEN_HEADER not in again.headers


def test_firebase_token_resolves_existing_account(
    firebase_client: TestClient, verifier: _FakeFirebaseVerifier
) -> None:
    first = firebase_client.get("/auth/me", headers={"Authorization": "Bearer fb-token-priya"})
    second = firebase_client.get("/auth/me", headers={"Authorization": "Bearer fb-token-priya"})

    assert first.status_code == 200 and second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert verifier.calls == ["fb-token-priya", "fb-token-priya"]


def test_first_party_token_is_not_sent_to_firebase(
    firebase_client: TestClient, verifier: _FakeFirebaseVerifier
) -> None:
    auth = signup(client=firebase_client)
    res = firebase_client.get(
        "/auth/me", headers={"Authorization": f"Bearer {auth['tokens']['access_token']}"}
    )
    assert res.status_code == 200
    assert verifier.calls == []


def test_invalid_token_with_firebase_configured_returns_401(firebase_client: TestClient) -> None:
    res = firebase_client.get("/auth/me", headers={"Authorization": "Bearer unknown-token"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Invalid token"


def test_firebase_signin_endpoint(firebase_client: TestClient) -> None:
    res = firebase_client.post(
        "/auth/firebase", json={"id_token": "fb-token-priya", "username": "priya.shah"}
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["user"]["username"] == "priya.shah"
    assert body["tokens"]["access_token"]

    bad = firebase_client.post("/auth/firebase", json={"id_token": "nope"})
    assert bad.status_code == 401


def test_firebase_account_without_email_is_rejected(firebase_client: TestClient) -> None:
    res = firebase_client.post("/auth/firebase", json={"id_token": "fb-token-no-email"})
    assert res.status_code == 400


def test_firebase_signin_not_configured_returns_503(client: TestClient) -> None:
    res = client.post("/auth/firebase", json={"id_token": "fb-token-priya"})
    assert res.status_code == 503
