from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

import httpx


class OpenAIError(Exception):
    """Base error for chat-completions failures; routers map it to 502."""


class OpenAIUnavailableError(OpenAIError):
    """The API could not be reached (connect error or timeout)."""


class OpenAIUpstreamError(OpenAIError):
    """The API answered, but not with a usable JSON object."""


# Some models wrap JSON answers in a markdown fence even in JSON mode.
_FENCE_RE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class OpenAIConfig:
    api_key: str
    base_url: str
    model: str
    timeout_seconds: float


def parse_json_object(content: str | None) -> dict[str, Any]:
    """Decode the assistant message into a JSON object, tolerating a ```json fence."""

    if not content or not content.strip():
        raise OpenAIUpstreamError("LLM response was empty")

    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group("body")

    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise OpenAIUpstreamError("LLM response was not valid JSON") from exc

    if not isinstance(parsed, dict):
        raise OpenAIUpstreamError("LLM response JSON must be an object")
    return parsed


class OpenAIClient:
    """
    Chat-completions client for the drafting and analysis endpoints.

    Every call runs in JSON mode and returns the decoded object; callers validate
    it with their own pydantic schema. Nothing here is logged because prompts and
    answers carry contract text.
    """

    def __init__(
        self,
        *,
        config: OpenAIConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._transport = transport

    @property
    def model(self) -> str:
        return self._config.model

    def _request_body(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "model": self._config.model,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        return body

    async def generate_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        body = self._request_body(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        try:
            async with httpx.AsyncClient(
                base_url=self._config.base_url.rstrip("/"),
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    "/chat/completions",
                    headers={"Authorization": f"Bearer {self._config.api_key}"},
                    json=body,
                )
        except httpx.TransportError as exc:
            # Timeouts are transport errors too.
            raise OpenAIUnavailableError("LLM request did not complete") from exc

        if resp.status_code != 200:
            # Upstream error bodies are not passed on; the edge answers a generic 502.
            raise OpenAIUpstreamError(f"LLM service returned HTTP {resp.status_code}")

        try:
            choice = resp.json()["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise OpenAIUpstreamError("LLM response had an unexpected shape") from exc

        # A JSON answer cut off at max_tokens never parses cleanly.
        if choice.get("finish_reason") == "length":
            raise OpenAIUpstreamError("LLM response was truncated")

        return parse_json_object(content)
