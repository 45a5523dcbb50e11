from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ContractCursor:
    sort: str
    order: str
    filters: dict[str, str | None]
    last_id: uuid.UUID
    last_value: str


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    # Accept padded and paddingless cursors.
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def encode_contract_cursor(
    *,
    sort: str,
    order: str,
    filters: dict[str, str | None],
    last_id: uuid.UUID,
    last_value: str,
) -> str:
    payload = {
        "v": 1,
        "sort": sort,
        "order": order,
        "filters": filters,
        "last": {"id": str(last_id), "value": last_value},
    }
    return _b64url_encode(
        json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    )


def decode_contract_cursor(
    *, cursor: str, sort: str, order: str, filters: dict[str, str | None]
) -> ContractCursor:
    """Decode a cursor and check it was issued for the same sort, order and filters."""

    try:
        payload: dict[str, Any] = json.loads(_b64url_decode(cursor))
    except Exception as exc:  # noqa: BLE001
        raise ValueError("Invalid cursor") from exc

    if not isinstance(payload, dict) or payload.get("v") != 1:
        raise ValueError("Invalid cursor version")

    if (
        payload.get("sort") != sort
        or payload.get("order") != order
        or payload.get("filters") != filters
    ):
        raise ValueError("Cursor does not match current query")

    last = payload.get("last")
    if not isinstance(last, dict) or not isinstance(last.get("id"), str):
        raise ValueError("Invalid cursor payload")
    try:
        last_id = uuid.UUID(last["id"])
    except ValueError as exc:
        raise ValueError("Invalid cursor payload") from exc
    last_value = last.get("value")
    if not isinstance(last_value, str):
        raise ValueError("Invalid cursor payload")

    return ContractCursor(
        sort=sort, order=order, filters=filters, last_id=last_id, last_value=last_value
    )


def parse_cursor_value(*, sort: str, raw: str) -> str | datetime:
    if sort in ("created_at", "updated_at"):
        try:
            return datetime.fromisoformat(raw)
        except ValueError as exc:
            raise ValueError("Invalid cursor payload") from exc
    return raw


def format_cursor_value(*, value: str | datetime) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
