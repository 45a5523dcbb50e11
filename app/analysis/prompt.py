from __future__ import annotations

import json
from typing import Any

_SYSTEM_PREAMBLE = [
    "You are an expert legal AI assistant specializing in Indian contract law.",
    "Base every statement ONLY on the contract provided. Do not invent facts about the parties.",
    "If the contract text is marked as truncated, do not guess what the missing part says.",
    "",
    "Output requirements:",
    "- Output MUST be valid JSON (and nothing else).",
]


def _contract_payload(contract: dict[str, Any]) -> str:
    return json.dumps(contract, ensure_ascii=False)


def build_contract_analysis_prompts(*, contract: dict[str, Any]) -> tuple[str, str]:
    """
    Create (system_prompt, user_prompt) for a full contract review.

    `contract` carries type, title, jurisdiction, clause titles and the (possibly
    truncated) text. The response is validated against the stored analysis shape.
    """

    system_prompt = "\n".join(
        [
            *_SYSTEM_PREAMBLE,
            "- Keys: 'risk_score' (integer 1-100, higher = more risk),",
            "  'completeness' (integer 1-100), 'strengths' (array of strings, at least 3),",
            "  'weaknesses' (array of strings, at least 3),",
            "  'recommendations' (array of strings, at least 3), 'issues' (array of strings),",
            "  'compliant_with_indian_law' (boolean),",
            "  'analysis_metadata' (object with 'confidence' between 0 and 1 and 'reasoning').",
        ]
    )
    user_prompt = (
        "Analyze this contract. Focus on legal risks, ambiguities, missing clauses, overall\n"
        "structure and enforceability under Indian law.\n\n"
        f"{_contract_payload(contract)}"
    )
    return system_prompt, user_prompt


def build_clause_suggestions_prompts(
    *, contract: dict[str, Any], clause: dict[str, Any]
) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            *_SYSTEM_PREAMBLE,
            "- Keys: 'improvement_suggestions' (array of strings),",
            "  'risk_areas' (array of strings),",
            "  'alternative_language' (string: the clause rewritten to address the issues),",
            "  'legal_citations' (array of strings).",
        ]
    )
    payload = {
        "contract_type": contract.get("type"),
        "jurisdiction": contract.get("jurisdiction"),
        "clause": {"title": clause.get("title"), "content": clause.get("content")},
        "focus": [
            "Legal clarity and precision",
            "Protection against potential risks",
            "Compliance with Indian law",
            "Enforceability",
            "Language simplification (where appropriate)",
        ],
    }
    user_prompt = (
        "Suggest improvements for the clause in the following JSON input.\n\n"
        f"{json.dumps(payload, ensure_ascii=False)}"
    )
    return system_prompt, user_prompt


def build_missing_clauses_prompts(*, contract: dict[str, Any]) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            *_SYSTEM_PREAMBLE,
            "- Keys: 'missing_clauses' (array of objects with 'title', 'importance'",
            "  (critical|important|recommended), 'description' and 'sample_content').",
        ]
    )
    user_prompt = (
        "Identify important clauses missing from this contract, based on best practices for\n"
        f"{contract.get('type')} contracts in India.\n\n"
        f"{_contract_payload(contract)}"
    )
    return system_prompt, user_prompt


def build_compliance_prompts(*, contract: dict[str, Any], laws: list[str]) -> tuple[str, str]:
    system_prompt = "\n".join(
        [
            *_SYSTEM_PREAMBLE,
            "- Keys: 'compliance_score' (integer 1-100), 'compliant_with_indian_law' (boolean),",
            "  'law_specific_compliance' (array of objects with 'law', 'is_compliant', 'issues',",
            "  'suggestions'), 'overall_assessment' (string), 'key_concerns' (array of strings).",
        ]
    )
    user_prompt = (
        f"Assess this contract's compliance with: {'; '.join(laws)}.\n"
        "State whether the terms are enforceable under Indian law and identify any areas of\n"
        "non-compliance or legal risk.\n\n"
        f"{_contract_payload(contract)}"
    )
    return system_prompt, user_prompt
