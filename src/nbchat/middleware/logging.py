"""Logging setup and request access logging.

Log records may carry chat context (chat name, provider, component) via
``extra=``; both formatters include it alongside the request id.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

ACCESS_LOGGER = "nbchat.access"

# Context variable for request ID
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Record attributes copied into structured output when present
EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "chat",
    "provider",
    "component",
    "error_code",
    "error_type",
)


def _request_id(record: logging.LogRecord) -> str | None:
    return getattr(record, "request_id", None) or request_id_var.get()


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        request_id = _request_id(record)
        if request_id:
            log_entry["request_id"] = request_id

        log_entry.update(_extras(record))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human readable lines for development, prefixed with the request id."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        request_id = _request_id(record)
        if request_id:
            line = f"[{request_id[:8]}] {line}"
        chat = getattr(record, "chat", None)
        if chat:
            line = f"{line} (chat={chat})"
        return line


def configure_logging(
    level: str = "INFO",
    format: str = "json",
) -> None:
    """Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: Output format (json or text).
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(JsonFormatter() if format == "json" else TextFormatter())

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Reduce noise from third-party libraries
    for name in ("uvicorn.access", "httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request once it completes, with its duration."""

    def __init__(self, app, logger: logging.Logger | None = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger(ACCESS_LOGGER)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = getattr(request.state, "request_id", None)
        token = request_id_var.set(request_id)
        extra = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.exception(
                "Request failed",
                extra={
                    **extra,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                    "error_type": type(e).__name__,
                },
            )
            raise
        else:
            # Streaming responses are logged when their headers are sent
            self.logger.info(
                "Request completed",
                extra={
                    **extra,
                    "status_code": response.status_code,
                    "duration_ms": int((time.perf_counter() - start_time) * 1000),
                },
            )
            return response
        finally:
            request_id_var.reset(token)
