from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from app.core.llm.openai_client import (
    OpenAIClient,
    OpenAIConfig,
    OpenAIUnavailableError,
    OpenAIUpstreamError,
    parse_json_object,
)

_CONFIG = OpenAIConfig(
    api_key="sk-test",
    base_url="https://llm.example.test/v1/",
    model="gpt-4o-mini",
    timeout_seconds=5.0,
)


def _completion(content: str, *, finish_reason: str = "stop") -> dict:
    return {"choices": [{"message": {"content": content}, "finish_reason": finish_reason}]}


def _generate(handler) -> dict:
    client = OpenAIClient(config=_CONFIG, transport=httpx.MockTransport(handler))
    return asyncio.run(
        client.generate_json(
            system_prompt="You are Lexi.", user_prompt="Draft.", temperature=0.7, max_tokens=50
        )
    )


def test_generate_json_sends_json_mode_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_completion('{"content": "Agreement text"}'))

    assert _generate(handler) == {"content": "Agreement text"}

    (request,) = seen
    assert str(request.url) == "https://llm.example.test/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4o-mini"
    assert body["response_format"] == {"type": "json_object"}
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 50
    assert [m["role"] for m in body["messages"]] == ["system", "user"]


def test_non_200_is_an_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    with pytest.raises(OpenAIUpstreamError):
        _generate(handler)


def test_connect_error_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(OpenAIUnavailableError):
        _generate(handler)


def test_truncated_answer_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion('{"content": "Agree', finish_reason="length"))

    with pytest.raises(OpenAIUpstreamError):
        _generate(handler)


def test_parse_json_object() -> None:
    assert parse_json_object('```json\n{"title": "Arbitration"}\n```') == {"title": "Arbitration"}
    assert parse_json_object(' {"a": 1} ') == {"a": 1}

    for bad in (None, "", "not json", "[1, 2]"):
        with pytest.raises(OpenAIUpstreamError):
            parse_json_object(bad)
