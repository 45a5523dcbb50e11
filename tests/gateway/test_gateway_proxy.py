"""Integration tests for the gateway: prefix routing, header handling and upstream failures."""

from __future__ import annotations

import gzip
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.gateway.main import create_gateway_app
from app.gateway.proxy import resolve_route
from app.gateway.settings import get_gateway_settings

SERVICES = {
    "/contracts": "http://contracts.internal:8000",
    "/contracts/analysis": "http://analysis.internal:8001",
    "/auth": "http://auth.internal:8002/v1",
}
EXPORT_TEXT = b"Clause 1. Term of engagement.\n" * 20_000


class _Upstream:
    """Records what the gateway forwarded and answers with a small JSON echo."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "down.internal":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path.endswith("/export.txt"):
            return httpx.Response(
                200, content=gzip.compress(EXPORT_TEXT), headers={"Content-Encoding": "gzip"}
            )
        return httpx.Response(
            201,
            json={"host": request.url.host, "path": request.url.path},
            headers=[
                ("Set-Cookie", "a=1; Path=/"),
                ("Set-Cookie", "b=2; Path=/"),
                ("X-Upstream", "yes"),
                ("Connection", "close"),
            ],
        )


@pytest.fixture
def upstream() -> _Upstream:
    return _Upstream()


@pytest.fixture
def gateway(upstream: _Upstream, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    services = {**SERVICES, "/down": "http://down.internal:9000"}
    monkeypatch.setenv("GATEWAY_SERVICES", json.dumps(services))
    get_gateway_settings.cache_clear()

    app = create_gateway_app(transport=httpx.MockTransport(upstream))
    with TestClient(app) as c:
        yield c
    get_gateway_settings.cache_clear()


def test_gateway_health_lists_services(gateway: TestClient) -> None:
    res = gateway.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["service"] == "gateway"
    assert body["services"]["/contracts"] == "http://contracts.internal:8000"


def test_forwards_to_longest_matching_prefix(gateway: TestClient, upstream: _Upstream) -> None:
    res = gateway.get("/api/contracts/analysis/abc")
    assert res.status_code == 201, res.text
    assert res.json() == {"host": "analysis.internal", "path": "/abc"}

    res = gateway.get("/api/contracts/123")
    assert res.json() == {"host": "contracts.internal", "path": "/123"}
    assert len(upstream.requests) == 2


def test_forwards_method_body_and_query(gateway: TestClient, upstream: _Upstream) -> None:
    res = gateway.post(
        "/api/auth/signin?remember=1&next=%2Fdashboard",
        json={"username": "asha.rao", "password": "secret"},
    )
    assert res.status_code == 201

    (forwarded,) = upstream.requests
    assert forwarded.method == "POST"
    # Upstream base paths are kept.
    assert forwarded.url.path == "/v1/signin"
    assert forwarded.url.query == b"remember=1&next=%2Fdashboard"
    assert json.loads(forwarded.content) == {"username": "asha.rao", "password": "secret"}


def test_request_headers(gateway: TestClient, upstream: _Upstream) -> None:
    gateway.get(
        "/api/contracts/123",
        headers={
            "Authorization": "Bearer token-123",
            "X-Request-ID": "req_gw-001",
            "Keep-Alive": "timeout=5",
            "Proxy-Authorization": "Basic abc",
        },
    )

    (forwarded,) = upstream.requests
    assert forwarded.headers["authorization"] == "Bearer token-123"
    assert forwarded.headers["x-request-id"] == "req_gw-001"
    assert forwarded.headers["x-forwarded-path"] == "/api/contracts/123"
    assert forwarded.headers["host"] == "contracts.internal:8000"
    assert "keep-alive" not in forwarded.headers
    assert "proxy-authorization" not in forwarded.headers


def test_request_id_is_generated_when_missing(gateway: TestClient, upstream: _Upstream) -> None:
    res = gateway.get("/api/contracts/123")

    (forwarded,) = upstream.requests
    assert forwarded.headers["x-request-id"]
    assert res.headers["x-request-id"] == forwarded.headers["x-request-id"]


def test_response_headers(gateway: TestClient) -> None:
    res = gateway.get("/api/contracts/123")

    assert res.headers["x-upstream"] == "yes"
    assert res.headers.get_list("set-cookie") == ["a=1; Path=/", "b=2; Path=/"]
    assert "connection" not in res.headers


def test_prefix_matches_whole_segments_only(gateway: TestClient, upstream: _Upstream) -> None:
    res = gateway.get("/api/contracts-archive/1")
    assert res.status_code == 404
    assert res.json() == {"detail": "Not Found"}
    assert upstream.requests == []


def test_unknown_prefix_returns_404(gateway: TestClient) -> None:
    res = gateway.get("/api/payments/checkout")
    assert res.status_code == 404
    assert res.json() == {"detail": "Not Found"}


def test_unreachable_upstream_returns_503(gateway: TestClient) -> None:
    res = gateway.get("/api/down/anything")
    assert res.status_code == 503
    assert res.json() == {"detail": "Service Unavailable"}


def test_resolve_route() -> None:
    route = resolve_route(services=SERVICES, path="/contracts/analysis/run")
    assert route is not None
    assert (route.prefix, route.base_url, route.path) == (
        "/contracts/analysis",
        "http://analysis.internal:8001",
        "/run",
    )

    exact = resolve_route(services=SERVICES, path="/auth")
    assert exact is not None
    assert exact.path == "/"

    # Configured prefixes may omit the leading slash or carry a trailing one.
    loose = resolve_route(services={"auth/": "http://auth.internal"}, path="/auth/me")
    assert loose is not None
    assert loose.path == "/me"

    assert resolve_route(services=SERVICES, path="/templates") is None


def test_large_request_body_is_forwarded_intact(gateway: TestClient, upstream: _Upstream) -> None:
    body = b"x" * (3 * 1024 * 1024)
    res = gateway.put(
        "/api/contracts/123/document",
        content=body,
        headers={"Content-Type": "application/octet-stream"},
    )
    assert res.status_code == 201

    (forwarded,) = upstream.requests
    assert forwarded.content == body
    assert forwarded.headers["content-length"] == str(len(body))
    assert "transfer-encoding" not in forwarded.headers


def test_encoded_response_is_relayed_undecoded(gateway: TestClient) -> None:
    compressed = gzip.compress(EXPORT_TEXT)

    res = gateway.get("/api/contracts/123/export.txt")

    assert res.status_code == 200
    assert res.headers["content-encoding"] == "gzip"
    assert res.headers["content-length"] == str(len(compressed))
    assert res.content == EXPORT_TEXT


def test_bodyless_request_is_not_sent_chunked(gateway: TestClient, upstream: _Upstream) -> None:
    gateway.get("/api/contracts/123")

    (forwarded,) = upstream.requests
    assert "transfer-encoding" not in forwarded.headers
    assert forwarded.content == b""
