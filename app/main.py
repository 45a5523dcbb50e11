from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.openapi.docs import get_redoc_html

from app.analysis.router import router as analysis_router
from app.api.exception_handlers import register_exception_handlers
from app.api.schemas import HealthOut
from app.contracts.router import router as contracts_router
from app.core.db import close_db, init_db
from app.core.logging import setup_logging
from app.core.metrics import PrometheusMetricsMiddleware, metrics_router
from app.core.middleware.http_logging import HttpLoggingMiddleware
from app.core.settings import get_settings
from app.drafting.router import router as drafting_router
from app.sharing.router import router as sharing_router
from app.templates.router import router as templates_router
from app.users.router import router as auth_router

setup_logging()

_REDOC_JS_URL = "https://cdn.jsdelivr.net/npm/redoc@2.1.4/bundles/redoc.standalone.js"


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Settings (and DATABASE_URL) are read at startup, not at import time.
        settings = get_settings()
        init_db(app=app, database_url=str(settings.database_url))
        yield
        await close_db(app=app)

    app = FastAPI(
        title="LexiDraft API",
        description=(
            "Backend for LexiDraft, an AI-assisted legal contract drafting service for "
            "Indian law.\n\n"
            "Design principles:\n"
            "- Contracts are submitted by the client-side wizard and owned by one user.\n"
            "- AI drafting and analysis are advisory; only stored analyses are persisted.\n"
            "- Logging and metrics are metadata-only: contract text, prompts and tokens "
            "never leave the request."
        ),
        lifespan=lifespan,
        docs_url="/swagger",  # Swagger UI ("Try it out")
        redoc_url=None,  # ReDoc is served at /docs
        openapi_tags=[
            {
                "name": "health",
                "description": "Basic uptime check for load balancers and monitoring.",
            },
            {
                "name": "auth",
                "description": (
                    "Sign-up, sign-in, token refresh and profile. Accepts LexiDraft JWTs and, "
                    "when configured, Firebase ID tokens."
                ),
            },
            {
                "name": "contracts",
                "description": (
                    "Contracts submitted by the drafting wizard: CRUD, status, versions and "
                    "the uploaded document."
                ),
            },
            {
                "name": "templates",
                "description": "Reusable contract templates (public and private).",
            },
            {
                "name": "drafting",
                "description": "Lexi assistant: AI contract drafts and clause help (not stored).",
            },
            {
                "name": "analysis",
                "description": "AI contract review, clause suggestions and compliance checks.",
            },
            {
                "name": "sharing",
                "description": "Public read-only share links and the contract activity trail.",
            },
            {
                "name": "metrics",
                "description": "Prometheus-compatible metrics endpoint.",
            },
        ],
    )

    app.add_middleware(PrometheusMetricsMiddleware)
    app.add_middleware(HttpLoggingMiddleware)

    register_exception_handlers(app)

    @app.get("/docs", include_in_schema=False)
    async def redoc_docs():
        return get_redoc_html(
            openapi_url=app.openapi_url or "/openapi.json",
            title=f"{app.title} - ReDoc",
            redoc_js_url=_REDOC_JS_URL,
        )

    @app.get(
        "/health",
        response_model=HealthOut,
        tags=["health"],
        summary="Health check",
        description=(
            "Lightweight endpoint to verify the API process is running. Downstream "
            "dependencies (DB, OpenAI, Firebase) are not checked."
        ),
    )
    async def health() -> HealthOut:
        return HealthOut(status="ok")

    app.include_router(metrics_router)
    app.include_router(auth_router)
    app.include_router(contracts_router)
    app.include_router(templates_router)
    app.include_router(drafting_router)
    app.include_router(analysis_router)
    app.include_router(sharing_router)
    return app


app = create_app()
