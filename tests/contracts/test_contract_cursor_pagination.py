"""Integration tests: contract cursor pagination, filtering and ordering."""

from __future__ import annotations

import base64
import json
import uuid

import pytest
from starlette.testclient import TestClient

from app.contracts.cursor_pagination import decode_contract_cursor, encode_contract_cursor
from tests.contracts._helpers import create_contract
from tests.users._helpers import signup_headers


def test_contract_cursor_pagination_ordered_by_title(client: TestClient) -> None:
    """Cursor pagination preserves ordering and avoids duplicates."""
    headers = signup_headers(client=client)
    for title in ("Beta services", "Alpha NDA", "Delta lease", "Gamma loan"):
        create_contract(client=client, headers=headers, title=title)

    page1 = client.get(
        "/contracts", params={"limit": 2, "sort": "title", "order": "asc"}, headers=headers
    )
    assert page1.status_code == 200
    p1 = page1.json()
    assert [c["title"] for c in p1["items"]] == ["Alpha NDA", "Beta services"]
    assert p1["next_cursor"] is not None

    page2 = client.get(
        "/contracts",
        params={"limit": 2, "sort": "title", "order": "asc", "cursor": p1["next_cursor"]},
        headers=headers,
    )
    assert page2.status_code == 200
    p2 = page2.json()
    assert [c["title"] for c in p2["items"]] == ["Delta lease", "Gamma loan"]
    assert p2["next_cursor"] is None


def test_default_order_is_newest_first(client: TestClient) -> None:
    headers = signup_headers(client=client)
    ids = [
        create_contract(client=client, headers=headers, title=f"Agreement {n}")["id"]
        for n in range(3)
    ]

    res = client.get("/contracts", headers=headers)
    assert [c["id"] for c in res.json()["items"]] == list(reversed(ids))


def test_cursor_is_bound_to_its_query(client: TestClient) -> None:
    headers = signup_headers(client=client)
    for n in range(3):
        create_contract(client=client, headers=headers, title=f"Agreement {n}")

    p1 = client.get("/contracts", params={"limit": 1, "sort": "title"}, headers=headers).json()

    mismatched = client.get(
        "/contracts",
        params={"limit": 1, "sort": "created_at", "cursor": p1["next_cursor"]},
        headers=headers,
    )
    assert mismatched.status_code == 400
    assert mismatched.json()["detail"] == "Cursor does not match current query"

    garbage = client.get("/contracts", params={"cursor": "%%%not-base64"}, headers=headers)
    assert garbage.status_code == 400


def test_filter_by_status_type_and_title(client: TestClient) -> None:
    headers = signup_headers(client=client)
    nda = create_contract(client=client, headers=headers, title="Mutual NDA", type="nda")
    create_contract(client=client, headers=headers, title="Office lease", type="lease")
    pending = create_contract(
        client=client, headers=headers, title="Supplier NDA", type="nda", status="pending"
    )

    by_type = client.get("/contracts", params={"type": "nda"}, headers=headers).json()
    assert {c["id"] for c in by_type["items"]} == {nda["id"], pending["id"]}

    by_status = client.get("/contracts", params={"status": "pending"}, headers=headers).json()
    assert [c["id"] for c in by_status["items"]] == [pending["id"]]

    by_title = client.get("/contracts", params={"title": "mutual"}, headers=headers).json()
    assert [c["id"] for c in by_title["items"]] == [nda["id"]]


def test_title_filter_shorter_than_three_characters_returns_400(client: TestClient) -> None:
    headers = signup_headers(client=client)
    res = client.get("/contracts", params={"title": "ab"}, headers=headers)
    assert res.status_code == 400


def test_invalid_limit_returns_422(client: TestClient) -> None:
    headers = signup_headers(client=client)
    assert client.get("/contracts", params={"limit": 0}, headers=headers).status_code == 422
    assert client.get("/contracts", params={"limit": 101}, headers=headers).status_code == 422


def test_cursor_decode_rejects_other_filters() -> None:
    last_id = uuid.uuid4()
    cursor = encode_contract_cursor(
        sort="title",
        order="asc",
        filters={"status": None, "type": "nda", "title": None},
        last_id=last_id,
        last_value="Alpha",
    )

    decoded = decode_contract_cursor(
        cursor=cursor,
        sort="title",
        order="asc",
        filters={"status": None, "type": "nda", "title": None},
    )
    assert decoded.last_id == last_id
    assert decoded.last_value == "Alpha"

    with pytest.raises(ValueError):
        decode_contract_cursor(
            cursor=cursor,
            sort="title",
            order="asc",
            filters={"status": None, "type": "lease", "title": None},
        )


@pytest.mark.parametrize("last", ["x", ["id", "value"], 7, {"id": 7, "value": "Alpha"}])
def test_cursor_with_malformed_position_returns_400(client: TestClient, last) -> None:
    headers = signup_headers(client=client)
    for n in range(2):
        create_contract(client=client, headers=headers, title=f"Agreement {n}")

    p1 = client.get("/contracts", params={"limit": 1}, headers=headers).json()
    raw = p1["next_cursor"]
    payload = json.loads(base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4)))
    payload["last"] = last
    tampered = base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")

    res = client.get("/contracts", params={"limit": 1, "cursor": tampered}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid cursor payload"
