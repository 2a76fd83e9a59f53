"""Exception handlers for the DexVault API.

Error body::

    {"status": "Invalid request.", "code": 400, "error": "<debug text>"}

``error`` is only present when error details are exposed; with details
hidden, every invalid request renders the same body whatever its cause.
Permission denials never carry ``error``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dexvault_core.exceptions import (
    DexVaultException,
    InvalidRequestError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

_STATUS_TEXT = {
    400: InvalidRequestError.status_text,
    403: PermissionDeniedError.status_text,
    404: "Not found.",
    405: "Method not allowed.",
    500: "Internal error.",
}


def get_request_id(request: Request) -> str:
    """Extract request ID from request state or headers."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("X-Request-ID", "unknown")


def create_error_response(
    status_code: int,
    request_id: str,
    status_text: Optional[str] = None,
    error: Optional[str] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "status": status_text or _STATUS_TEXT.get(status_code, "Error."),
        "code": status_code,
    }
    if error:
        content["error"] = error
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": request_id},
    )


def _client_facing(exc: DexVaultException) -> DexVaultException:
    if isinstance(exc, (InvalidRequestError, PermissionDeniedError)):
        return exc
    if exc.http_status < 500:
        return InvalidRequestError.wrap(exc)
    return exc


def register_exception_handlers(app: FastAPI, show_details: bool = True) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(DexVaultException)
    async def dexvault_exception_handler(request: Request, exc: DexVaultException) -> JSONResponse:
        request_id = get_request_id(request)
        rendered = _client_facing(exc)

        if rendered.http_status >= 500:
            logger.error(
                f"Server error: {rendered.error_code}",
                extra={"request_id": request_id, "error_code": rendered.error_code},
                exc_info=True,
            )
        else:
            logger.warning(
                f"Client error: {rendered.error_code}",
                extra={
                    "request_id": request_id,
                    "error_code": rendered.error_code,
                    "error_type": rendered.details.get("cause"),
                    "state": rendered.details.get("state"),
                },
            )

        body = rendered.to_dict()
        return create_error_response(
            status_code=rendered.http_status,
            request_id=request_id,
            status_text=body["status"],
            error=body.get("error") if show_details else None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = get_request_id(request)
        errors = [
            f"{'.'.join(str(loc) for loc in e.get('loc', ()))}: {e.get('msg', 'invalid')}"
            for e in exc.errors()
        ]
        logger.warning(
            f"Validation error: {len(errors)} field(s) failed",
            extra={"request_id": request_id, "path": request.url.path},
        )
        return create_error_response(
            status_code=400,
            request_id=request_id,
            error="; ".join(errors) if show_details else None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        request_id = get_request_id(request)
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"HTTP error {exc.status_code}: {exc.detail}",
            extra={"request_id": request_id, "path": request.url.path},
        )
        return create_error_response(
            status_code=exc.status_code,
            request_id=request_id,
            error=str(exc.detail) if show_details and exc.detail else None,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = get_request_id(request)
        logger.error(
            f"Unhandled exception: {type(exc).__name__}",
            extra={"request_id": request_id, "path": request.url.path, "error_type": type(exc).__name__},
            exc_info=True,
        )
        return create_error_response(status_code=500, request_id=request_id)
