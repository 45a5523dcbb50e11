from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from app.api.schemas import GatewayHealthOut
from app.core.logging import setup_logging
from app.core.metrics import (
    PrometheusMetricsMiddleware,
    metrics_router,
    record_upstream_request,
)
from app.core.middleware.http_logging import HttpLoggingMiddleware, get_or_create_request_id
from app.gateway.proxy import UpstreamUnavailableError, forward_request, resolve_route
from app.gateway.settings import get_gateway_settings

setup_logging(service="gateway")

logger = logging.getLogger("app.gateway")

_PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_gateway_app(*, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Build the gateway process: `/api/<prefix>/<rest>` is forwarded to the upstream
    configured for `<prefix>` in GATEWAY_SERVICES.

    `transport` replaces the network transport of the shared upstream client.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_gateway_settings()
        app.state.gateway_settings = settings
        # One pooled client for all upstreams; redirects are passed through to the caller.
        app.state.http_client = httpx.AsyncClient(
            timeout=settings.timeout_seconds,
            transport=transport,
            follow_redirects=False,
        )
        yield
        await app.state.http_client.aclose()

    app = FastAPI(
        title="LexiDraft Gateway",
        description="Path-prefix reverse proxy in front of the LexiDraft backend processes.",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)

    @app.get("/api/health", response_model=GatewayHealthOut, tags=["health"])
    async def health(request: Request) -> GatewayHealthOut:
        settings = request.app.state.gateway_settings
        return GatewayHealthOut(status="ok", services=dict(settings.services))

    @app.api_route("/api/{path:path}", methods=_PROXY_METHODS, include_in_schema=False)
    async def proxy(path: str, request: Request) -> Response:
        settings = request.app.state.gateway_settings
        route = resolve_route(services=settings.services, path="/" + path)
        if route is None:
            return JSONResponse(status_code=404, content={"detail": "Not Found"})

        request_id = getattr(request.state, "request_id", None) or get_or_create_request_id(
            request=request
        )
        try:
            response = await forward_request(
                client=request.app.state.http_client,
                request=request,
                route=route,
                request_id=request_id,
            )
        except UpstreamUnavailableError:
            record_upstream_request(upstream=route.prefix, outcome="unavailable")
            logger.warning(
                "Upstream unavailable",
                extra={"request_id": request_id, "upstream": route.prefix, "success": False},
            )
            return JSONResponse(status_code=503, content={"detail": "Service Unavailable"})

        record_upstream_request(upstream=route.prefix, outcome="forwarded")
        return response

    app.include_router(metrics_router)
    return app


app = create_gateway_app()
