"""Integration tests: template library visibility, publishing and instantiation."""

from __future__ import annotations

from starlette.testclient import TestClient

from tests.users._helpers import auth_headers, set_role, signup, signup_headers


def _template_payload(**overrides) -> dict:
    payload = {
        "title": "Mutual NDA (India)",
        "type": "nda",
        "description": "Two-way confidentiality agreement.",
        "content": "Each party shall keep the other party's information confidential.",
        "clauses": [
            {"title": "Confidentiality", "content": "Keep it secret."},
            {"title": "Term", "content": "Two years from the effective date."},
        ],
    }
    payload.update(overrides)
    return payload


def _create_template(*, client: TestClient, headers: dict[str, str], **overrides) -> dict:
    res = client.post("/templates", json=_template_payload(**overrides), headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def _admin_headers(*, client: TestClient, database_url: str) -> dict[str, str]:
    admin = signup(client=client, username="admin.user")
    set_role(database_url=database_url, username="admin.user", role="admin")
    return auth_headers(admin)


def test_private_template_is_visible_only_to_its_owner(client: TestClient) -> None:
    owner = signup_headers(client=client, username="asha.rao")
    other = signup_headers(client=client, username="ravi.kumar")
    template = _create_template(client=client, headers=owner)
    assert template["is_public"] is False
    assert [c["id"] for c in template["clauses"]] == ["clause-1", "clause-2"]

    assert client.get(f"/templates/{template['id']}", headers=owner).status_code == 200
    # Someone else's private template is reported as missing.
    hidden = client.get(f"/templates/{template['id']}", headers=other)
    assert hidden.status_code == 404
    assert hidden.json()["detail"] == "Template not found"

    assert [t["id"] for t in client.get("/templates", headers=owner).json()] == [template["id"]]
    assert client.get("/templates", headers=other).json() == []


def test_only_admins_publish_templates(client: TestClient, database_url: str) -> None:
    user = signup_headers(client=client)

    denied = client.post("/templates", json=_template_payload(is_public=True), headers=user)
    assert denied.status_code == 403
    assert denied.json()["detail"] == "Only administrators can publish templates"

    admin = _admin_headers(client=client, database_url=database_url)
    published = _create_template(client=client, headers=admin, is_public=True)
    assert published["is_public"] is True

    # Public templates show up for everyone.
    listed = client.get("/templates", headers=user).json()
    assert [t["id"] for t in listed] == [published["id"]]


def test_owner_cannot_publish_own_template(client: TestClient) -> None:
    headers = signup_headers(client=client)
    template = _create_template(client=client, headers=headers)

    res = client.put(f"/templates/{template['id']}", json={"is_public": True}, headers=headers)
    assert res.status_code == 403


def test_list_templates_filters_by_type(client: TestClient) -> None:
    headers = signup_headers(client=client)
    nda = _create_template(client=client, headers=headers)
    _create_template(client=client, headers=headers, title="Office lease", type="lease")

    res = client.get("/templates", params={"type": "nda"}, headers=headers)
    assert res.status_code == 200
    assert [t["id"] for t in res.json()] == [nda["id"]]


def test_update_and_delete_own_template(client: TestClient) -> None:
    headers = signup_headers(client=client)
    template = _create_template(client=client, headers=headers)

    updated = client.put(
        f"/templates/{template['id']}",
        json={"title": "Mutual NDA v2", "content": "Updated text."},
        headers=headers,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["title"] == "Mutual NDA v2"
    assert updated.json()["content"] == "Updated text."

    assert client.delete(f"/templates/{template['id']}", headers=headers).status_code == 204
    assert client.get(f"/templates/{template['id']}", headers=headers).status_code == 404


def test_public_template_cannot_be_changed_by_regular_users(
    client: TestClient, database_url: str
) -> None:
    admin = _admin_headers(client=client, database_url=database_url)
    template = _create_template(client=client, headers=admin, is_public=True)
    user = signup_headers(client=client)

    res = client.put(f"/templates/{template['id']}", json={"title": "Mine now"}, headers=user)
    assert res.status_code == 403
    assert client.delete(f"/templates/{template['id']}", headers=user).status_code == 403


def test_instantiate_template_creates_draft_contract(client: TestClient) -> None:
    headers = signup_headers(client=client)
    template = _create_template(client=client, headers=headers)

    res = client.post(
        f"/templates/{template['id']}/contracts",
        json={
            "title": "NDA with Globex",
            "parties": [
                {"name": "Acme Technologies Pvt. Ltd.", "role": "client"},
                {"name": "Globex LLP", "role": "other"},
            ],
        },
        headers=headers,
    )
    assert res.status_code == 201, res.text
    contract = res.json()
    assert contract["template_id"] == template["id"]
    assert contract["status"] == "draft"
    assert contract["type"] == "nda"
    assert contract["jurisdiction"] == "India"
    assert contract["content"] == template["content"]
    assert [c["title"] for c in contract["clauses"]] == ["Confidentiality", "Term"]

    versions = client.get(f"/contracts/{contract['id']}/versions", headers=headers).json()
    assert [v["version"] for v in versions] == [1]


def test_templates_require_authentication(client: TestClient) -> None:
    assert client.get("/templates").status_code == 401
