from __future__ import annotations

import json
from typing import Any

# Statutes cited when drafting, by contract type. Unlisted types use "other".
INDIAN_LAW_REFERENCES: dict[str, str] = {
    "nda": "Indian Contract Act, 1872 and the Information Technology Act, 2000",
    "freelance": "Indian Contract Act, 1872 and the Copyright Act, 1957",
    "employment": (
        "Indian Contract Act, 1872, Industrial Disputes Act, 1947, and the Shops and "
        "Establishments Act"
    ),
    "founder": (
        "Indian Contract Act, 1872, Companies Act, 2013, and Limited Liability Partnership "
        "Act, 2008"
    ),
    "lease": (
        "Indian Contract Act, 1872, Transfer of Property Act, 1882, and the Rent Control Act "
        "of the specific state"
    ),
    "rent_residential": (
        "Indian Contract Act, 1872, Transfer of Property Act, 1882, and the Rent Control Act "
        "of the specific state"
    ),
    "rent_commercial": (
        "Indian Contract Act, 1872, Transfer of Property Act, 1882, and the Registration Act, 1908"
    ),
    "property_sale": (
        "Transfer of Property Act, 1882, Registration Act, 1908, and the Indian Stamp Act, 1899"
    ),
    "sale_of_goods": "Sale of Goods Act, 1930 and the Indian Contract Act, 1872",
    "partnership": "Indian Partnership Act, 1932 and the Indian Contract Act, 1872",
    "loan": "Indian Contract Act, 1872 and the Negotiable Instruments Act, 1881",
    "guarantee": "Indian Contract Act, 1872 (Sections 126 to 147)",
    "ip_licensing": "Copyright Act, 1957, Patents Act, 1970, and the Trade Marks Act, 1999",
    "ip_transfer": "Copyright Act, 1957, Patents Act, 1970, and the Trade Marks Act, 1999",
    "software_development": (
        "Indian Contract Act, 1872, Copyright Act, 1957, and the Information Technology Act, 2000"
    ),
    "e_commerce": (
        "Information Technology Act, 2000, Consumer Protection (E-Commerce) Rules, 2020, and "
        "the Indian Contract Act, 1872"
    ),
    "fdi_compliance": "Foreign Exchange Management Act, 1999 and the Companies Act, 2013",
    "gst_compliance": "Central Goods and Services Tax Act, 2017 and the Indian Contract Act, 1872",
    "msme": (
        "Micro, Small and Medium Enterprises Development Act, 2006 and the "
        "Indian Contract Act, 1872"
    ),
    "other": "Indian Contract Act, 1872 and other applicable sectoral laws",
}

_REQUIRED_SECTIONS = [
    "A clear preamble with date, parties, and purpose of the agreement",
    "Precise definitions of all key terms",
    "Detailed scope of work/services/obligations with measurable deliverables",
    "Clear payment terms, including amounts, schedule, and late payment consequences",
    "Intellectual property rights provisions",
    "Confidentiality clauses",
    "Term and termination conditions",
    "Dispute resolution mechanism (preferably arbitration in India)",
    "Force majeure clause covering unexpected events",
    "Applicable law and jurisdiction statement",
    "Severability and waiver clauses",
    "Amendment procedures",
    "Complete signature block",
]

_TONE_GUIDANCE = {
    "friendly": "Warm, cooperative wording that still keeps obligations enforceable.",
    "balanced": "Neutral, even-handed wording that protects both parties.",
    "strict": "Firm, protective wording with explicit remedies and little room for interpretation.",
}

_ENHANCE_INSTRUCTIONS: dict[str, list[str]] = {
    "rewrite": [
        "Rewrite the clause for clarity, enforceability and alignment with {jurisdiction} law.",
        "Keep it enforceable, improve phrasing and flow, and fill in missing but essential "
        "legal conditions.",
        "The result must read as if drafted by a legal professional.",
    ],
    "explain": [
        "Explain the clause in plain, human-friendly English. Avoid jargon. "
        "Keep it under 100 words.",
        "Cover what it means, what it protects or enforces, and when it applies.",
        "Put a one-line TL;DR summary in 'explanation'.",
    ],
    "simplify": [
        "Simplify the clause for non-lawyers while keeping its legal effect under "
        "{jurisdiction} law.",
        "Use plain language, keep it shorter where possible and add paragraph breaks "
        "for readability.",
    ],
    "strengthen": [
        "Strengthen the clause to give better legal protection under {jurisdiction} law.",
        "Add appropriate protections, close loopholes and add specific remedies where appropriate.",
        "Use proper legal terminology for enforceability.",
    ],
    "validate": [
        "Validate the clause for compliance with {jurisdiction} law.",
        "In 'result', assess compliance and identify potential legal issues or vulnerabilities.",
        "In 'explanation', give specific suggestions and cite relevant statutes or case law "
        "if applicable.",
    ],
}


def applicable_laws(contract_type: str) -> str:
    return INDIAN_LAW_REFERENCES.get(contract_type, INDIAN_LAW_REFERENCES["other"])


def build_contract_draft_prompts(
    *,
    contract_type: str,
    parties: list[dict[str, Any]],
    jurisdiction: str,
    requirements: str | None,
) -> tuple[str, str]:
    """
    Create (system_prompt, user_prompt) for drafting a full contract.

    Output is a JSON object with a single field: {"content": "..."}.
    """

    system_prompt = "\n".join(
        [
            "You are a senior legal expert specializing in Indian contract law with 15+ years of",
            "experience drafting contracts for the Indian market.",
            "Create professional, precise and legally sound contracts tailored to Indian legal",
            "requirements and business practices, with proper clause numbering and hierarchy.",
            "",
            "Output requirements:",
            "- Output MUST be valid JSON (and nothing else).",
            "- The JSON MUST be an object with exactly one key: 'content'.",
            "- 'content' MUST be the complete contract text.",
        ]
    )

    regional_context: list[str] = []
    if jurisdiction.strip().lower() != "india":
        regional_context = [
            f"Include provisions that comply with {jurisdiction} state laws in addition to "
            "central Indian laws.",
            f"Consider local regulations and precedents from the {jurisdiction} High Court "
            "when applicable.",
        ]

    user_payload = {
        "contract_type": contract_type,
        "parties": [{"name": p.get("name"), "role": p.get("role")} for p in parties],
        "jurisdiction": jurisdiction,
        "applicable_laws": applicable_laws(contract_type),
        "regional_context": regional_context,
        "requirements": requirements or "Standard terms that protect both parties adequately.",
        "required_sections": _REQUIRED_SECTIONS,
        "style": [
            "Use formal but clear language that would be admissible in Indian courts.",
            "After each major clause, add a brief plain-language explanation in [square brackets].",
        ],
    }

    user_prompt = (
        "Draft a contract from the following JSON input.\n"
        'Return ONLY JSON: {"content": "..."}\n\n'
        f"{json.dumps(user_payload, ensure_ascii=False)}"
    )
    return system_prompt, user_prompt


def build_clause_enhance_prompts(
    *,
    action: str,
    content: str,
    jurisdiction: str,
    tone: str,
) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            f"You are Lexi, a legal drafting assistant specialized in {jurisdiction} law.",
            "You improve, explain and check contract clauses.",
            "",
            "Output requirements:",
            "- Output MUST be valid JSON (and nothing else).",
            "- The JSON MUST be an object with keys 'result' (string) and",
            "  'explanation' (string or null).",
        ]
    )

    instructions = [
        line.format(jurisdiction=jurisdiction) for line in _ENHANCE_INSTRUCTIONS[action]
    ]
    user_payload = {
        "action": action,
        "jurisdiction": jurisdiction,
        "tone": tone,
        "tone_guidance": _TONE_GUIDANCE.get(tone, ""),
        "instructions": instructions,
        "clause": content,
    }

    user_prompt = (
        "Process the clause in the following JSON input.\n"
        'Return ONLY JSON: {"result": "...", "explanation": "..."}\n\n'
        f"{json.dumps(user_payload, ensure_ascii=False)}"
    )
    return system_prompt, user_prompt


def build_clause_analysis_prompts(*, content: str) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            "You are a legal expert specializing in Indian contract law.",
            "Analyze the contract clause and provide:",
            "1. A clear explanation in simple terms",
            "2. Suggestions for improvements or alternative phrasings",
            "3. Relevant legal context under Indian law",
            "",
            "Output requirements:",
            "- Output MUST be valid JSON (and nothing else).",
            "- Keys: 'explanation' (string), 'suggestions' (array of strings),",
            "  'legal_context' (string).",
        ]
    )
    user_prompt = (
        "Analyze the clause in the following JSON input.\n"
        'Return ONLY JSON: {"explanation": "...", "suggestions": ["..."], '
        '"legal_context": "..."}\n\n'
        f"{json.dumps({'clause': content}, ensure_ascii=False)}"
    )
    return system_prompt, user_prompt


def build_clause_compose_prompts(
    *,
    goal: str,
    context: str | None,
    contract_type: str | None,
    jurisdiction: str,
    tone: str,
    user_role: str | None,
) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            f"You are Lexi, a legal drafting assistant specialized in {jurisdiction} law.",
            "Generate precise, legally compliant clauses in human-understandable legal language.",
            f"Clauses must be valid under the {jurisdiction} contract law and ready for "
            "real contracts.",
            "",
            "Output requirements:",
            "- Output MUST be valid JSON (and nothing else).",
            "- Keys: 'title' (string), 'content' (string), 'explanation' (string or null).",
        ]
    )
    user_payload = {
        "purpose": goal,
        "additional_context": context or "",
        "contract_type": contract_type or "standard",
        "user_role": user_role or "",
        "jurisdiction": jurisdiction,
        "tone": tone,
        "tone_guidance": _TONE_GUIDANCE.get(tone, ""),
    }
    user_prompt = (
        "Compose a contract clause from the following JSON input.\n"
        'Return ONLY JSON: {"title": "...", "content": "...", "explanation": "..."}\n\n'
        f"{json.dumps(user_payload, ensure_ascii=False)}"
    )
    return system_prompt, user_prompt
