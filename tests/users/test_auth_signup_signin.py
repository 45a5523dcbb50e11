"""Integration tests: account registration, sign-in and profile."""

from __future__ import annotations

from starlette.testclient import TestClient

from tests.users._helpers import auth_headers, signup


def test_signup_returns_user_and_token_pair(client: TestClient) -> None:
    body = signup(client=client, username="asha.rao", email="Asha.Rao@Example.com")

    user = body["user"]
    assert user["username"] == "asha.rao"
    # E-mail is stored lower-cased.
    assert user["email"] == "asha.rao@example.com"
    assert user["role"] == "user"
    assert user["uid"].startswith("usr_")
    assert "password" not in user and "password_hash" not in user

    tokens = body["tokens"]
    assert tokens["token_type"] == "bearer"
    assert tokens["access_token"] and tokens["refresh_token"]
    assert tokens["access_token"] != tokens["refresh_token"]
    assert tokens["expires_in"] == 3600


def test_signup_duplicate_email_or_username_returns_400(client: TestClient) -> None:
    signup(client=client, username="asha.rao", email="asha@example.com")

    dup_email = client.post(
        "/auth/signup",
        json={
            "username": "someone.else",
            "email": "ASHA@example.com",
            "password": "correct-horse-battery",
            "full_name": "Someone",
        },
    )
    assert dup_email.status_code == 400
    assert dup_email.json()["detail"] == "Email is already registered."

    dup_username = client.post(
        "/auth/signup",
        json={
            "username": "Asha.Rao",
            "email": "other@example.com",
            "password": "correct-horse-battery",
            "full_name": "Other",
        },
    )
    assert dup_username.status_code == 400
    assert dup_username.json()["detail"] == "Username is already taken."


def test_signup_rejects_short_password(client: TestClient) -> None:
    res = client.post(
        "/auth/signup",
        json={
            "username": "asha.rao",
            "email": "asha@example.com",
            "password": "short",
            "full_name": "Asha Rao",
        },
    )
    assert res.status_code == 422


def test_signin_with_username_or_email(client: TestClient) -> None:
    signup(client=client, username="asha.rao", email="asha@example.com", password="s3cret-pass")

    by_username = client.post("/auth/signin", json={"login": "asha.rao", "password": "s3cret-pass"})
    assert by_username.status_code == 200, by_username.text
    assert by_username.json()["user"]["username"] == "asha.rao"

    by_email = client.post(
        "/auth/signin", json={"login": "ASHA@example.com", "password": "s3cret-pass"}
    )
    assert by_email.status_code == 200, by_email.text
    assert by_email.json()["tokens"]["access_token"]


def test_signin_wrong_password_and_unknown_account_look_the_same(client: TestClient) -> None:
    signup(client=client, username="asha.rao", password="s3cret-pass")

    wrong_password = client.post("/auth/signin", json={"login": "asha.rao", "password": "nope"})
    unknown = client.post("/auth/signin", json={"login": "nobody", "password": "s3cret-pass"})

    assert wrong_password.status_code == 401
    assert unknown.status_code == 401
    assert wrong_password.json() == unknown.json()
    assert wrong_password.headers["www-authenticate"] == "Bearer"


def test_me_requires_bearer_token(client: TestClient) -> None:
    res = client.get("/auth/me")
    assert res.status_code == 401
    assert res.json()["detail"] == "Authentication required"


def test_get_and_update_profile(client: TestClient) -> None:
    auth = signup(client=client, username="asha.rao")
    headers = auth_headers(auth)

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["id"] == auth["user"]["id"]

    updated = client.put(
        "/auth/me",
        json={"full_name": "Asha R. Rao", "avatar": "https://cdn.example.com/a.png"},
        headers=headers,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["full_name"] == "Asha R. Rao"
    assert updated.json()["avatar"] == "https://cdn.example.com/a.png"
    assert updated.json()["username"] == "asha.rao"


def test_update_profile_username_collision_returns_400(client: TestClient) -> None:
    signup(client=client, username="ravi.kumar")
    headers = auth_headers(signup(client=client, username="asha.rao"))

    res = client.put("/auth/me", json={"username": "Ravi.Kumar"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Username is already taken."
