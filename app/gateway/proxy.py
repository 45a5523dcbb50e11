from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

# RFC 7230 section 6.1; never forwarded in either direction.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)
FORWARDED_PATH_HEADER = "X-Forwarded-Path"


class UpstreamUnavailableError(Exception):
    """Raised when the upstream cannot be reached or does not answer in time."""


@dataclass(frozen=True)
class Route:
    prefix: str
    base_url: str
    path: str


def _normalize_prefix(prefix: str) -> str:
    return "/" + prefix.strip("/")


def resolve_route(*, services: dict[str, str], path: str) -> Route | None:
    """
    Pick the upstream for `path` (already stripped of the `/api` mount).

    The longest matching prefix wins; a prefix matches on whole path segments only,
    so `/contracts` does not capture `/contracts-archive`. The prefix is removed
    from the forwarded path.
    """

    best: tuple[str, str] | None = None
    for prefix, base_url in services.items():
        normalized = _normalize_prefix(prefix)
        if path == normalized or path.startswith(normalized + "/"):
            if best is None or len(normalized) > len(best[0]):
                best = (normalized, base_url)

    if best is None:
        return None

    prefix, base_url = best
    rest = path[len(prefix) :] or "/"
    return Route(prefix=prefix, base_url=base_url, path=rest)


def build_upstream_url(*, route: Route, query: str) -> str:
    url = f"{route.base_url.rstrip('/')}{route.path}"
    return f"{url}?{query}" if query else url


def _forwardable(name: str, *, extra_excluded: frozenset[str]) -> bool:
    lowered = name.lower()
    return lowered not in HOP_BY_HOP_HEADERS and lowered not in extra_excluded


def upstream_request_headers(
    *, request: Request, request_id: str
) -> list[tuple[str, str]]:
    # Content-Length is kept so a streamed body is not re-sent chunked.
    excluded = frozenset({"host", "x-request-id", "x-forwarded-path"})
    headers = [
        (name, value)
        for name, value in request.headers.items()
        if _forwardable(name, extra_excluded=excluded)
    ]
    headers.append((FORWARDED_PATH_HEADER, request.url.path))
    headers.append(("X-Request-ID", request_id))
    return headers


def downstream_response_headers(*, response: httpx.Response) -> list[tuple[bytes, bytes]]:
    # The body is relayed undecoded, so Content-Length and Content-Encoding still hold.
    return [
        (name.encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers.multi_items()
        if _forwardable(name, extra_excluded=frozenset())
    ]


def _has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


async def _relay(upstream: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.aiter_raw():
            yield chunk
    finally:
        await upstream.aclose()


async def forward_request(
    *,
    client: httpx.AsyncClient,
    request: Request,
    route: Route,
    request_id: str,
) -> Response:
    """Forward `request` to the route's upstream, streaming both bodies through."""

    upstream_request = client.build_request(
        request.method,
        build_upstream_url(route=route, query=request.url.query),
        headers=upstream_request_headers(request=request, request_id=request_id),
        content=request.stream() if _has_body(request) else None,
    )
    try:
        upstream = await client.send(upstream_request, stream=True)
    except httpx.TransportError as exc:
        raise UpstreamUnavailableError(route.prefix) from exc

    response = StreamingResponse(_relay(upstream), status_code=upstream.status_code)
    # Raw headers keep repeated fields such as Set-Cookie.
    response.raw_headers.extend(downstream_response_headers(response=upstream))
    return response
