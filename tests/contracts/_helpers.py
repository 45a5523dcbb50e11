"""Test helpers for the contracts slice."""

from __future__ import annotations

import asyncio
import uuid

from sqlalchemy import func, select
from starlette.testclient import TestClient

from app.core.db import create_engine
from app.core.llm.deps import get_openai_client


def contract_payload(**overrides) -> dict:
    payload = {
        "title": "Website development agreement",
        "type": "freelance",
        "jurisdiction": "India",
        "content": "This Agreement is made between Acme and Ravi for website development.",
        "parties": [
            {"name": "Acme Technologies Pvt. Ltd.", "role": "client"},
            {"name": "Ravi Kumar", "role": "provider", "email": "ravi@example.com"},
        ],
        "clauses": [
            {"title": "Scope of Work", "content": "The Provider shall build the website."},
            {"title": "Payment", "content": "The Client shall pay INR 50,000 on delivery."},
        ],
    }
    payload.update(overrides)
    return payload


def create_contract(*, client: TestClient, headers: dict[str, str], **overrides) -> dict:
    """Create a contract and return the response body."""
    # Never follow redirects on POST; a 307/308 would re-POST and create duplicates.
    res = client.post(
        "/contracts",
        json=contract_payload(**overrides),
        headers=headers,
        follow_redirects=False,
    )
    assert res.status_code == 201, res.text
    return res.json()


class _StaticAnalysisClient:
    async def generate_json(self, *, system_prompt: str, user_prompt: str, **kwargs) -> dict:
        return {"risk_score": 40, "completeness": 75, "compliant_with_indian_law": True}


def populate_contract(*, client: TestClient, headers: dict[str, str], contract_id: str) -> None:
    """Give a contract one of every dependent: version, analysis, share link, document."""

    res = client.patch(
        f"/contracts/{contract_id}", json={"content": "Revised terms."}, headers=headers
    )
    assert res.status_code == 200, res.text

    client.app.dependency_overrides[get_openai_client] = lambda: _StaticAnalysisClient()
    try:
        res = client.post(f"/analysis/contracts/{contract_id}", headers=headers)
        assert res.status_code == 201, res.text
    finally:
        client.app.dependency_overrides.pop(get_openai_client, None)

    res = client.post(f"/contracts/{contract_id}/share-links", json={}, headers=headers)
    assert res.status_code == 201, res.text

    res = client.put(
        f"/contracts/{contract_id}/document",
        files={"file": ("signed.pdf", b"%PDF-1.7\n%signed\n", "application/pdf")},
        headers=headers,
    )
    assert res.status_code == 200, res.text


def count_rows(*, database_url: str, model, column, value: str) -> int:
    """Count `model` rows whose `column` equals the id `value`, straight from the database."""

    wanted = uuid.UUID(value)

    async def run() -> int:
        engine = create_engine(database_url=database_url)
        try:
            async with engine.connect() as conn:
                stmt = select(func.count()).select_from(model).where(column == wanted)
                return int((await conn.execute(stmt)).scalar_one())
        finally:
            await engine.dispose()

    return asyncio.run(run())
