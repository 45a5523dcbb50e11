"""Integration tests: status transitions, edit locking and version history."""

from __future__ import annotations

from starlette.testclient import TestClient

from tests.contracts._helpers import create_contract
from tests.users._helpers import signup_headers


def test_status_transitions_follow_the_lifecycle(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]

    pending = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "pending"}, headers=headers
    )
    assert pending.status_code == 200, pending.text
    assert pending.json()["status"] == "pending"

    signed = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "signed"}, headers=headers
    )
    assert signed.status_code == 200
    assert signed.json()["status"] == "signed"

    back_to_draft = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "draft"}, headers=headers
    )
    assert back_to_draft.status_code == 400
    assert back_to_draft.json()["detail"] == "Cannot change contract status from signed to draft."


def test_draft_cannot_jump_to_signed(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]

    res = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "signed"}, headers=headers
    )
    assert res.status_code == 400


def test_setting_the_same_status_is_a_no_op(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]

    res = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "draft"}, headers=headers
    )
    assert res.status_code == 200
    assert res.json()["status"] == "draft"


def test_unknown_status_returns_422(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]

    res = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "archived"}, headers=headers
    )
    assert res.status_code == 422


def test_signed_contract_cannot_be_edited(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers, status="pending")["id"]
    client.patch(f"/contracts/{contract_id}/status", json={"status": "signed"}, headers=headers)

    res = client.patch(f"/contracts/{contract_id}", json={"content": "Changed."}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "A signed contract cannot be edited."


def test_cancelled_contract_cannot_be_edited(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]
    res = client.patch(
        f"/contracts/{contract_id}/status", json={"status": "cancelled"}, headers=headers
    )
    assert res.status_code == 200

    res = client.patch(f"/contracts/{contract_id}", json={"title": "Revived"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "A cancelled contract cannot be edited."

    versions = client.get(f"/contracts/{contract_id}/versions", headers=headers).json()
    assert [v["version"] for v in versions] == [1]


def test_content_edits_create_versions(client: TestClient) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]

    # Metadata-only edits do not snapshot a version.
    client.patch(f"/contracts/{contract_id}", json={"title": "Renamed agreement"}, headers=headers)

    res = client.patch(
        f"/contracts/{contract_id}",
        json={
            "content": "Revised agreement text.",
            "clauses": [{"id": "payment", "title": "Payment", "content": "Pay in 30 days."}],
        },
        headers=headers,
    )
    assert res.status_code == 200, res.text

    versions = client.get(f"/contracts/{contract_id}/versions", headers=headers)
    assert versions.status_code == 200
    items = versions.json()
    assert [v["version"] for v in items] == [2, 1]

    latest, first = items
    assert latest["content"] == "Revised agreement text."
    assert sorted(latest["changes"]) == ["clauses", "content"]
    assert [c["id"] for c in latest["clauses"]] == ["payment"]
    assert first["changes"] == ["created"]
    assert first["content"].startswith("This Agreement is made between")


def test_unchanged_content_does_not_create_a_version(client: TestClient) -> None:
    headers = signup_headers(client=client)
    created = create_contract(client=client, headers=headers)

    client.patch(
        f"/contracts/{created['id']}", json={"content": created["content"]}, headers=headers
    )

    versions = client.get(f"/contracts/{created['id']}/versions", headers=headers).json()
    assert [v["version"] for v in versions] == [1]
