"""Integration tests: dashboard counters for the caller's contracts."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.llm.deps import get_openai_client
from app.main import create_app
from tests.contracts._helpers import create_contract
from tests.users._helpers import signup_headers


class _ScriptedAnalysisClient:
    """Answers each review with the next (risk_score, completeness) pair."""

    def __init__(self, scores: list[tuple[int, int]]):
        self._scores = list(scores)

    async def generate_json(self, *, system_prompt: str, user_prompt: str, **kwargs) -> dict:
        risk_score, completeness = self._scores.pop(0)
        return {
            "risk_score": risk_score,
            "completeness": completeness,
            "compliant_with_indian_law": True,
        }


def test_stats_for_new_user_are_zero(client: TestClient) -> None:
    headers = signup_headers(client=client)

    res = client.get("/contracts/stats", headers=headers)
    assert res.status_code == 200, res.text
    assert res.json() == {
        "total_contracts": 0,
        "by_status": {"draft": 0, "pending": 0, "signed": 0, "expired": 0, "cancelled": 0},
        "analyzed_contracts": 0,
        "average_risk_score": None,
        "average_completeness": None,
    }


def test_stats_count_statuses_and_average_latest_analyses() -> None:
    app = create_app()
    app.dependency_overrides[get_openai_client] = lambda: _ScriptedAnalysisClient(
        [(80, 40), (30, 90), (50, 70)]
    )
    with TestClient(app) as client:
        headers = signup_headers(client=client)
        first = create_contract(client=client, headers=headers, title="Draft one")
        create_contract(client=client, headers=headers, title="Draft two")
        second = create_contract(client=client, headers=headers, title="Pending", status="pending")
        signed = create_contract(client=client, headers=headers, title="Signed", status="pending")
        res = client.patch(
            f"/contracts/{signed['id']}/status", json={"status": "signed"}, headers=headers
        )
        assert res.status_code == 200

        # The first contract is reviewed twice; only its latest review (30, 90) counts.
        for contract_id in (first["id"], first["id"], second["id"]):
            res = client.post(f"/analysis/contracts/{contract_id}", headers=headers)
            assert res.status_code == 201, res.text

        # Another user's contracts never show up.
        other = signup_headers(client=client, username="vikram.shah")
        create_contract(client=client, headers=other, title="Someone else's draft")

        stats = client.get("/contracts/stats", headers=headers).json()

    assert stats["total_contracts"] == 4
    assert stats["by_status"] == {
        "draft": 2,
        "pending": 1,
        "signed": 1,
        "expired": 0,
        "cancelled": 0,
    }
    assert stats["analyzed_contracts"] == 2
    assert stats["average_risk_score"] == 40.0
    assert stats["average_completeness"] == 80.0


def test_stats_require_authentication(client: TestClient) -> None:
    assert client.get("/contracts/stats").status_code == 401
