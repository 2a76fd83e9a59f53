"""Structured logging middleware with correlation IDs for request tracing.

Provides:
- Request/response correlation IDs
- Request timing and metrics
- Structured JSON logging outside development
- Token presence logged, never headers or token values
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request correlation ID
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = logging.getLogger("dexvault.api")

# Extra record attributes copied into JSON output
_JSON_FIELDS = (
    "event",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_ip",
    "user",
    "wallet",
    "action",
    "endpoint",
    "network",
    "signer",
    "commits",
    "failed_commits",
    "error_code",
    "error_type",
    "state",
)


@dataclass
class LoggingConfig:
    """Configuration for structured logging middleware."""

    # Paths to exclude from logging entirely
    exclude_paths: List[str] = field(default_factory=lambda: ["/health"])

    # Paths to log at DEBUG level only
    debug_paths: List[str] = field(default_factory=lambda: ["/metrics"])

    # Slow request threshold (ms); logs warning if exceeded
    slow_request_threshold_ms: float = 1000.0


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = request_id_var.get() or "-"
        return True


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for structured logging with correlation IDs.

    Accepts an inbound X-Request-ID or generates one, logs request start and
    completion with timing, records HTTP metrics and echoes the id back in
    the response headers.
    """

    def __init__(self, app, config: LoggingConfig | None = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    def _record_metrics(self, *, method: str, path: str, status_code: int, duration_ms: float) -> None:
        try:
            from ..routers.metrics import record_http_request

            record_http_request(
                method=method,
                endpoint=path,
                status=status_code,
                duration=max(duration_ms / 1000.0, 0.0),
            )
        except Exception:
            # Metrics failures never affect request processing.
            logger.debug("metrics_recording_failed", exc_info=True)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.config.exclude_paths:
            return await call_next(request)

        correlation_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:16]}"
        request_id_var.set(correlation_id)
        request.state.request_id = correlation_id

        method = request.method
        path = request.url.path
        log_level = logging.DEBUG if path.endswith(tuple(self.config.debug_paths)) else logging.INFO

        request_context = {
            "event": "request_start",
            "correlation_id": correlation_id,
            "method": method,
            "path": path,
            "client_ip": self._get_client_ip(request),
            "has_token": bool(
                request.headers.get("authorization") or request.cookies.get("jwt")
            ),
        }
        logger.log(log_level, "Request started", extra=request_context)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed",
                extra={
                    "event": "request_error",
                    "correlation_id": correlation_id,
                    "method": method,
                    "path": path,
                    "error_type": type(e).__name__,
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            self._record_metrics(method=method, path=path, status_code=500, duration_ms=duration_ms)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response_context = {
            "event": "request_complete",
            "correlation_id": correlation_id,
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "user": getattr(request.state, "user", None),
        }

        if response.status_code >= 500:
            logger.error("Request completed with server error", extra=response_context)
        elif response.status_code >= 400:
            logger.warning("Request completed with client error", extra=response_context)
        elif duration_ms > self.config.slow_request_threshold_ms:
            logger.warning("Slow request completed", extra=response_context)
        else:
            logger.log(log_level, "Request completed", extra=response_context)

        self._record_metrics(
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
        }
        for name in _JSON_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        json_format: Use JSON format (non-dev) or human-readable (dev)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.addFilter(CorrelationIdFilter())

    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"
            )
        )

    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_correlation_id() -> Optional[str]:
    """Get the current request's correlation ID."""
    return request_id_var.get()
