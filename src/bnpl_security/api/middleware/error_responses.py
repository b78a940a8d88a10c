"""Structured error responses and FastAPI exception handlers."""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...core.exceptions import (
    BnplSecurityError,
    RateLimitExceeded,
    ValidationError,
    create_error_response,
    get_http_status_code,
)
from .request_context import get_correlation_id

logger = logging.getLogger(__name__)


def error_headers(exc: Exception) -> Dict[str, str]:
    """Extra response headers an error carries."""
    if isinstance(exc, RateLimitExceeded):
        headers = {
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": str(exc.remaining),
            "Retry-After": str(exc.retry_after),
        }
        if exc.reset_at is not None:
            headers["X-RateLimit-Reset"] = str(exc.reset_at)
        return headers
    return {}


def build_error_response(
    exc: Exception,
    correlation_id: Optional[str],
    status_code: Optional[int] = None,
) -> JSONResponse:
    """Render ``exc`` as ``{code, message, correlationId, timestamp}``."""
    return JSONResponse(
        status_code=status_code or get_http_status_code(exc),
        content=create_error_response(exc, correlation_id),
        headers={**error_headers(exc), "X-Correlation-ID": correlation_id or ""},
    )


async def handle_bnpl_security_error(request: Request, exc: BnplSecurityError) -> JSONResponse:
    correlation_id = get_correlation_id(request)
    status_code = get_http_status_code(exc)
    log_level = logging.ERROR if status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"[{correlation_id}] {exc.error_code}: {exc.message}",
        extra={"structured_data": {
            "event_type": "request_error",
            "error_code": exc.error_code,
            "status_code": status_code,
            "path": request.url.path,
            "correlation_id": correlation_id,
        }},
    )
    return build_error_response(exc, correlation_id, status_code)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    correlation_id = get_correlation_id(request)
    fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
    error = ValidationError(f"Invalid request: {', '.join(fields) or 'body'}")
    return build_error_response(error, correlation_id)


def register_exception_handlers(app: FastAPI) -> None:
    """Render package errors and request validation errors uniformly."""
    app.add_exception_handler(BnplSecurityError, handle_bnpl_security_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
