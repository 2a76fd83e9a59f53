"""Middleware for the DexVault API.

- Structured logging with correlation ids
- Exception handling with the collapsed error body
"""
from .exceptions import create_error_response, get_request_id, register_exception_handlers
from .logging import (
    CorrelationIdFilter,
    JSONFormatter,
    LoggingConfig,
    StructuredLoggingMiddleware,
    get_correlation_id,
    request_id_var,
    setup_logging,
)

__all__ = [
    # Logging
    "StructuredLoggingMiddleware",
    "JSONFormatter",
    "CorrelationIdFilter",
    "LoggingConfig",
    "setup_logging",
    "get_correlation_id",
    "request_id_var",
    # Exceptions
    "register_exception_handlers",
    "create_error_response",
    "get_request_id",
]
