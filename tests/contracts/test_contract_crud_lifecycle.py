"""Integration tests: contract create/read/update/delete and ownership."""

from __future__ import annotations

from starlette.testclient import TestClient

from app.analysis.models import ContractAnalysis
from app.contracts.models import Contract, ContractVersion
from app.sharing.models import DocumentActivity, ShareLink
from tests.contracts._helpers import (
    contract_payload,
    count_rows,
    create_contract,
    populate_contract,
)
from tests.users._helpers import signup_headers


def test_contract_crud_lifecycle(client: TestClient) -> None:
    headers = signup_headers(client=client)

    created = create_contract(client=client, headers=headers)
    contract_id = created["id"]
    assert created["status"] == "draft"
    assert created["jurisdiction"] == "India"
    assert created["lexi_cert_id"] == f"LEXI-{contract_id.replace('-', '')[:8].upper()}"
    assert created["has_document"] is False
    # Missing clause ids are assigned from their position.
    assert [c["id"] for c in created["clauses"]] == ["clause-1", "clause-2"]

    got = client.get(f"/contracts/{contract_id}", headers=headers)
    assert got.status_code == 200
    assert got.json()["title"] == "Website development agreement"

    patched = client.patch(
        f"/contracts/{contract_id}",
        json={"title": "Website and hosting agreement", "description": "Includes hosting."},
        headers=headers,
    )
    assert patched.status_code == 200, patched.text
    assert patched.json()["title"] == "Website and hosting agreement"
    assert patched.json()["description"] == "Includes hosting."

    listed = client.get("/contracts", headers=headers)
    assert listed.status_code == 200
    assert [c["id"] for c in listed.json()["items"]] == [contract_id]
    # List items omit the full text.
    assert "content" not in listed.json()["items"][0]

    deleted = client.delete(f"/contracts/{contract_id}", headers=headers)
    assert deleted.status_code == 204

    missing = client.get(f"/contracts/{contract_id}", headers=headers)
    assert missing.status_code == 404


def test_contract_requires_authentication(client: TestClient) -> None:
    res = client.post("/contracts", json=contract_payload())
    assert res.status_code == 401


def test_contract_of_another_user_is_forbidden(client: TestClient) -> None:
    owner = signup_headers(client=client, username="asha.rao")
    intruder = signup_headers(client=client, username="ravi.kumar")
    contract_id = create_contract(client=client, headers=owner)["id"]

    assert client.get(f"/contracts/{contract_id}", headers=intruder).status_code == 403
    assert (
        client.patch(f"/contracts/{contract_id}", json={"title": "x"}, headers=intruder).status_code
        == 403
    )
    assert client.delete(f"/contracts/{contract_id}", headers=intruder).status_code == 403

    # Other users' contracts never show up in listings.
    assert client.get("/contracts", headers=intruder).json()["items"] == []


def test_unknown_contract_returns_404(client: TestClient) -> None:
    headers = signup_headers(client=client)
    res = client.get("/contracts/00000000-0000-0000-0000-000000000000", headers=headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Contract not found"


def test_contract_requires_at_least_one_party(client: TestClient) -> None:
    headers = signup_headers(client=client)
    res = client.post("/contracts", json=contract_payload(parties=[]), headers=headers)
    assert res.status_code == 422


def test_contract_rejects_unknown_type_and_party_role(client: TestClient) -> None:
    headers = signup_headers(client=client)

    bad_type = client.post("/contracts", json=contract_payload(type="marriage"), headers=headers)
    assert bad_type.status_code == 422

    bad_role = client.post(
        "/contracts",
        json=contract_payload(parties=[{"name": "Acme", "role": "landlord"}]),
        headers=headers,
    )
    assert bad_role.status_code == 422


def test_duplicate_clause_ids_are_rejected(client: TestClient) -> None:
    headers = signup_headers(client=client)
    res = client.post(
        "/contracts",
        json=contract_payload(
            clauses=[
                {"id": "payment", "title": "Payment", "content": "Pay on delivery."},
                {"id": "payment", "title": "Late payment", "content": "Interest applies."},
            ]
        ),
        headers=headers,
    )
    assert res.status_code == 400
    assert res.json()["detail"] == "Clause ids must be unique within a contract."


def test_assigned_clause_ids_skip_ids_already_in_use(client: TestClient) -> None:
    headers = signup_headers(client=client)
    created = create_contract(
        client=client,
        headers=headers,
        clauses=[
            {"title": "Scope", "content": "Build the site."},
            {"id": "clause-1", "title": "Payment", "content": "Pay on delivery."},
        ],
    )
    assert [c["id"] for c in created["clauses"]] == ["clause-2", "clause-1"]


def test_recent_contracts_newest_update_first(client: TestClient) -> None:
    headers = signup_headers(client=client)
    first = create_contract(client=client, headers=headers, title="First agreement")
    second = create_contract(client=client, headers=headers, title="Second agreement")

    client.patch(f"/contracts/{first['id']}", json={"title": "First agreement v2"}, headers=headers)

    res = client.get("/contracts/recent", params={"limit": 5}, headers=headers)
    assert res.status_code == 200
    assert [c["id"] for c in res.json()] == [first["id"], second["id"]]


def test_deleting_contract_removes_every_dependent(client: TestClient, database_url: str) -> None:
    headers = signup_headers(client=client)
    contract_id = create_contract(client=client, headers=headers)["id"]
    kept_id = create_contract(client=client, headers=headers, title="Kept")["id"]
    populate_contract(client=client, headers=headers, contract_id=contract_id)

    dependents = [
        (ContractVersion, ContractVersion.contract_id),
        (ContractAnalysis, ContractAnalysis.contract_id),
        (ShareLink, ShareLink.contract_id),
        (DocumentActivity, DocumentActivity.contract_id),
    ]
    for model, column in dependents:
        assert count_rows(
            database_url=database_url, model=model, column=column, value=contract_id
        ) >= 1, model.__name__

    res = client.delete(f"/contracts/{contract_id}", headers=headers)
    assert res.status_code == 204

    for model, column in [(Contract, Contract.id), *dependents]:
        assert count_rows(
            database_url=database_url, model=model, column=column, value=contract_id
        ) == 0, model.__name__

    # Other contracts keep their own history.
    assert count_rows(
        database_url=database_url,
        model=ContractVersion,
        column=ContractVersion.contract_id,
        value=kept_id,
    ) == 1
