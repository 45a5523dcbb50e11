"""Seed the public system templates for local development.

Safe to run multiple times:
- It only runs when APP_ENV=development
- It inserts rows only when no system template (user_id IS NULL) exists yet
"""

# ruff: noqa: I001
# pyright: reportMissingImports=false
from __future__ import annotations

import asyncio
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.settings import get_settings
from app.templates.models import Template

_COMMON_CLAUSES = [
    {
        "id": "indian-arbitration",
        "title": "Arbitration Clause",
        "content": (
            "Any dispute arising out of or in connection with this contract shall be referred to "
            "and finally resolved by arbitration in accordance with the Arbitration and "
            "Conciliation Act, 1996 of India. The arbitral tribunal shall consist of a sole "
            "arbitrator appointed by mutual consent of the parties. The seat of arbitration "
            "shall be [CITY], India."
        ),
    },
    {
        "id": "indian-governing-law",
        "title": "Governing Law",
        "content": (
            "This Agreement shall be governed by and construed in accordance with the laws of "
            "India, without giving effect to any choice of law or conflict of law provisions."
        ),
    },
    {
        "id": "indian-stamp-duty",
        "title": "Stamp Duty Compliance",
        "content": (
            "The parties agree that this Agreement shall be properly stamped in accordance with "
            "the applicable Stamp Act in the relevant state of India where this Agreement is "
            "executed. Each party shall bear its own costs in relation to the stamping."
        ),
    },
]


def _seed_rows() -> list[dict]:
    """Return a deterministic set of system templates."""
    # Deterministic UUIDs so concurrent seed runs agree on ids.
    ns = uuid.UUID("9a4c7d52-2f0e-4d7b-a5b1-6b8f3c1e0d21")
    rows = [
        (
            "Indian Non-Disclosure Agreement",
            "nda",
            "Standard Non-Disclosure Agreement compliant with Indian contract law",
            [
                {
                    "id": "nda-definitions",
                    "title": "Definitions",
                    "content": (
                        '"Confidential Information" means any information disclosed by one party '
                        "to the other, directly or indirectly, in writing, orally or by "
                        "inspection, excluding information that is or becomes publicly known "
                        "through no fault of the Receiving Party."
                    ),
                },
                {
                    "id": "nda-obligations",
                    "title": "Confidentiality Obligations",
                    "content": (
                        "The Receiving Party shall maintain the confidentiality of the "
                        "Confidential Information and use it only for the purpose of [PURPOSE]."
                    ),
                },
                {
                    "id": "nda-term",
                    "title": "Term and Termination",
                    "content": (
                        "This Agreement shall remain in force for a period of [DURATION] years. "
                        "The confidentiality obligations survive termination for [SURVIVAL "
                        "PERIOD] years."
                    ),
                },
            ],
        ),
        (
            "Indian Employment Contract",
            "employment",
            "Employment agreement following Indian labour laws",
            [
                {
                    "id": "employment-position",
                    "title": "Position and Duties",
                    "content": (
                        "The Employee shall be employed in the position of [POSITION] and shall "
                        "report to [SUPERVISOR]."
                    ),
                },
                {
                    "id": "employment-compensation",
                    "title": "Compensation and Benefits",
                    "content": (
                        "The Employee shall receive a gross annual salary of INR [AMOUNT], "
                        "payable monthly, subject to deduction of income tax at source and other "
                        "statutory deductions under Indian law."
                    ),
                },
            ],
        ),
        (
            "Freelance Services Agreement",
            "freelance",
            "Project-based services agreement for independent professionals in India",
            [
                {
                    "id": "freelance-scope",
                    "title": "Scope of Work",
                    "content": (
                        "The Freelancer shall deliver the services described in Schedule A by "
                        "[DELIVERY DATE]."
                    ),
                },
                {
                    "id": "freelance-payment",
                    "title": "Payment Terms",
                    "content": (
                        "The Client shall pay INR [AMOUNT] within [DAYS] days of receiving a "
                        "valid GST invoice."
                    ),
                },
            ],
        ),
    ]

    out: list[dict] = []
    for title, contract_type, description, clauses in rows:
        all_clauses = clauses + _COMMON_CLAUSES
        out.append(
            {
                "id": uuid.uuid5(ns, title),
                "user_id": None,
                "title": title,
                "type": contract_type,
                "description": description,
                "content": "\n\n".join(f"{c['title']}\n{c['content']}" for c in all_clauses),
                "clauses": all_clauses,
                "is_public": True,
            }
        )
    return out


async def seed_templates_if_empty(*, database_url: str) -> None:
    """Seed the system templates if there are none yet."""
    engine = create_async_engine(database_url, pool_pre_ping=True)
    sessionmaker = async_sessionmaker(engine, expire_on_commit=False)

    async with sessionmaker() as session:
        stmt = select(func.count()).select_from(Template).where(Template.user_id.is_(None))
        total = int((await session.execute(stmt)).scalar_one())
        if total > 0:
            print(f"Seed skipped: {total} system template(s) already present.")
            await engine.dispose()
            return

        templates = [Template(**row) for row in _seed_rows()]
        session.add_all(templates)
        await session.commit()
        print(f"Seeded {len(templates)} templates.")

    await engine.dispose()


def main() -> None:
    """Entry point."""
    settings = get_settings()
    if not settings.is_development:
        print(f"Seed skipped: APP_ENV={settings.app_env!r} (seeding only runs in development).")
        return

    asyncio.run(seed_templates_if_empty(database_url=settings.database_url))


if __name__ == "__main__":
    main()
