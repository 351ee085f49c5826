"""
Photo Browser API — Centralized Error Handling
================================================

What:  Maps every failure that escapes a handler to an HTTP status and a JSON
       body. This is the only place error responses are built.
How:   Registered on the FastAPI app by `register_exception_handlers()`;
       middleware that must reject a request early uses `render_error()`.

Response shapes:
    {"error": "..."}
    {"error": "Validation failed", "details": [{"field": ..., "message": ...}]}
    {"error": "...", "retryAfter": "15 minutes"}            (429 only)
    {"error": "Internal server error", "message", "stack"}  (500, non-production)

Handler map:
    ValidationError / RequestValidationError → 400 with details
    RateLimitExceededError                   → 429 + Retry-After
    PhotoBrowserError (any other)            → its own status
    IntegrityError (unique / primary key)    → 409 "<field> already exists"
    DataError                                → 400 "Invalid ID format"
    jwt.ExpiredSignatureError                → 401 "Token expired"
    jwt.InvalidTokenError                    → 401 "Invalid token"
    HTTPException 404 / 405                  → "Route not found" / "Method not allowed"
    Exception                                → 500
"""

import logging
import re
import traceback
from typing import Any, Dict, Optional

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from photo_browser.config import settings
from photo_browser.exceptions import (
    PhotoBrowserError,
    RateLimitExceededError,
    ValidationError,
)
from photo_browser.middleware.request_id import request_id_var
from photo_browser.validation import violations_from_errors

logger = logging.getLogger(__name__)

# "UNIQUE constraint failed: users.email" (SQLite)
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")
# 'Key (email)=(a@b.c) already exists.' (PostgreSQL)
_POSTGRES_UNIQUE = re.compile(r"Key \((\w+)\)=\(.*\) already exists")


def duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Name of the column whose unique constraint was violated, if recognisable."""
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in (_SQLITE_UNIQUE, _POSTGRES_UNIQUE):
        match = pattern.search(text)
        if match:
            return match.group(1)
    if "duplicate key" in text or "UNIQUE constraint" in text:
        return ""
    return None


def error_body(exc: PhotoBrowserError) -> Dict[str, Any]:
    if isinstance(exc, ValidationError):
        return {"error": exc.message, "details": [v.to_dict() for v in exc.violations]}
    if isinstance(exc, RateLimitExceededError):
        return {"error": exc.message, "retryAfter": exc.retry_hint}
    return {"error": exc.message}


def render_error(exc: PhotoBrowserError) -> JSONResponse:
    """Build the JSON response for an operational error."""
    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(status_code=exc.status_code, content=error_body(exc), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler to `app`. Called once from `create_app()`."""

    @app.exception_handler(PhotoBrowserError)
    async def handle_operational_error(request: Request, exc: PhotoBrowserError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            # Storage and internal faults keep their detail in the logs only
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
        logger.info("[%s] %s (%d): %s", rid, exc.kind, exc.status_code, exc.message)
        return render_error(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        violations = violations_from_errors(exc.errors())
        logger.info("[%s] Validation failed: %d violation(s)", request_id_var.get(""), len(violations))
        return render_error(ValidationError(violations))

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        field = duplicate_field(exc)
        rid = request_id_var.get("")
        if field is None:
            logger.warning("[%s] Integrity error: %s", rid, exc.orig)
            return JSONResponse(status_code=400, content={"error": "Request violates a data constraint"})
        logger.warning("[%s] Duplicate key on %s", rid, field or "unknown field")
        message = f"{field} already exists" if field else "Resource already exists"
        return JSONResponse(status_code=409, content={"error": message})

    @app.exception_handler(DataError)
    async def handle_data_error(request: Request, exc: DataError):
        logger.info("[%s] Data error: %s", request_id_var.get(""), exc.orig)
        return JSONResponse(status_code=400, content={"error": "Invalid ID format"})

    @app.exception_handler(jwt.ExpiredSignatureError)
    async def handle_expired_token(request: Request, exc: jwt.ExpiredSignatureError):
        return JSONResponse(status_code=401, content={"error": "Token expired"})

    @app.exception_handler(jwt.InvalidTokenError)
    async def handle_invalid_token(request: Request, exc: jwt.InvalidTokenError):
        return JSONResponse(status_code=401, content={"error": "Invalid token"})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = "Route not found"
        elif exc.status_code == 405:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for unexpected errors.

        The stack trace is always logged; it is only attached to the response
        outside production.
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
        content: Dict[str, Any] = {"error": "Internal server error"}
        if not settings.is_production:
            content["message"] = str(exc)
            content["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return JSONResponse(status_code=500, content=content)
