from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.exceptions import (
    AuthenticationError,
    BusinessValidationError,
    PermissionDeniedError,
)

logger = logging.getLogger("app.errors")


def _log_rejection(*, request: Request, status_code: int, error: str, message: str) -> None:
    # IMPORTANT: do not log request bodies, query values, or tokens.
    request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")
    route = request.scope.get("route")
    logger.info(
        message,
        extra={
            "request_id": request_id,
            "http_method": request.method,
            "request_path": getattr(route, "path", None) or "unmatched",
            "status_code": status_code,
            "error": error,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register application exception handlers."""

    @app.exception_handler(BusinessValidationError)
    async def handle_business_validation_error(
        request: Request,
        exc: BusinessValidationError,
    ) -> JSONResponse:
        _log_rejection(
            request=request,
            status_code=400,
            error="business_validation",
            message="Business validation failed",
        )
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(
        request: Request,
        exc: PermissionDeniedError,
    ) -> JSONResponse:
        _log_rejection(
            request=request,
            status_code=403,
            error="permission_denied",
            message="Permission denied",
        )
        return JSONResponse(status_code=403, content={"detail": exc.message})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(
        request: Request,
        exc: AuthenticationError,
    ) -> JSONResponse:
        _log_rejection(
            request=request,
            status_code=401,
            error="authentication",
            message="Authentication failed",
        )
        return JSONResponse(
            status_code=401,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )
