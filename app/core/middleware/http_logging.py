"""Per-request access logging and X-Request-ID correlation.

Only metadata is logged: method, route template, status and duration. Request
and response bodies carry contract text and credentials, raw paths carry share
tokens and query strings carry search terms, so none of them reach the log.
"""

from __future__ import annotations

import logging
import re
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("app.http")

REQUEST_ID_HEADER = "X-Request-ID"
# Propagated ids end up in logs and upstream headers; anything else is replaced.
_SAFE_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")


def get_or_create_request_id(*, request: Request) -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER)
    if candidate and _SAFE_REQUEST_ID_PATTERN.fullmatch(candidate):
        return candidate
    return uuid.uuid4().hex


def route_template(*, request: Request) -> str:
    """The matched route's template (e.g. /shared/{token}), or "unmatched"."""

    path = getattr(request.scope.get("route"), "path", None)
    return path if isinstance(path, str) and path else "unmatched"


class HttpLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = get_or_create_request_id(request=request)
        # Routers and the gateway read the id from request.state.
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001 - logged with stack trace, then re-raised
            logger.exception(
                "Unhandled exception while processing request",
                extra={
                    "request_id": request_id,
                    "http_method": request.method,
                    "request_path": route_template(request=request),
                    "status_code": 500,
                    "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
                },
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "http_method": request.method,
                "request_path": route_template(request=request),
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            },
        )
        return response
