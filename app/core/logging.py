"""Structured JSON logging for the API and gateway processes.

One JSON object per line on stdout. Records carry metadata only: contract text,
clause text, prompts, LLM answers, passwords and tokens never reach a log call.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import UTC, datetime
from typing import Any

# Correlation/business metadata copied from `extra=` when present.
_EXTRA_FIELDS = (
    "user_id",
    "contract_id",
    "template_id",
    "analysis_id",
    "share_link_id",
    "operation",
    "upstream",
    "success",
    "error",
)

# httpx logs full request URLs at INFO (gateway query strings, share tokens);
# request lines are already covered by HttpLoggingMiddleware.
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class JsonFormatter(logging.Formatter):
    """Render a record as JSON; fields a record does not carry come out as null."""

    def __init__(self, *, service: str = "api"):
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "method": getattr(record, "http_method", None),
            "path": getattr(record, "request_path", None),
            "status_code": getattr(record, "status_code", None),
            "duration_ms": getattr(record, "duration_ms", None),
        }
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(*, service: str = "api", level: str | None = None) -> None:
    """Route all logging through one JSON stdout handler (`LOG_LEVEL`, default INFO)."""

    root_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "app.core.logging.JsonFormatter",
                    "service": service,
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": "ext://sys.stdout",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            "root": {
                "level": root_level,
                "handlers": ["stdout"],
            },
        }
    )
