from __future__ import annotations

import time
from typing import cast

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.middleware.http_logging import route_template

metrics_router = APIRouter(tags=["metrics"])

# Label values come from fixed sets or route templates (/contracts/{contract_id});
# contract ids, user uids and share tokens never become label values.

http_requests_total = Counter(
    "http_requests_total",
    "HTTP requests by method, route template and status",
    labelnames=("method", "route", "status_code"),
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=("method", "route", "status_code"),
    # Drafting and analysis wait on the LLM for tens of seconds.
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

llm_requests_total = Counter(
    "llm_requests_total",
    "LLM-backed operations by outcome",
    labelnames=("operation", "outcome"),
)

gateway_upstream_requests_total = Counter(
    "gateway_upstream_requests_total",
    "Requests the gateway forwarded, by configured prefix and outcome",
    labelnames=("upstream", "outcome"),
)


def record_llm_request(*, operation: str, outcome: str) -> None:
    """Count one LLM-backed operation. `outcome` is one of success|failure|unavailable."""
    llm_requests_total.labels(operation=operation, outcome=outcome).inc()


def record_upstream_request(*, upstream: str, outcome: str) -> None:
    gateway_upstream_requests_total.labels(upstream=upstream, outcome=outcome).inc()


class PrometheusMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            labels = {
                "method": request.method,
                "route": route_template(request=request),
                "status_code": str(status_code),
            }
            http_requests_total.labels(**labels).inc()
            http_request_duration_seconds.labels(**labels).observe(
                time.perf_counter() - started
            )


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    # Process-wide default registry; the API and the gateway each expose their own.
    return Response(content=cast(bytes, generate_latest()), media_type=CONTENT_TYPE_LATEST)
