"""
Photo Browser API — Custom Exception Hierarchy
================================================

What:  Operational errors raised by services, dependencies and middleware.
How:   Each class carries a fixed HTTP status and a user-facing message; the
       central handlers in `error_handlers.py` turn them into JSON bodies.
Who:   Raised everywhere below the route layer; never caught by routes.

Exception Hierarchy:
    PhotoBrowserError (base)
    ├── BadRequestError          → 400
    │   └── ValidationError      → 400 (with field-level violations)
    ├── UnauthorizedError        → 401
    ├── ForbiddenError           → 403
    ├── NotFoundError            → 404
    ├── ConflictError            → 409
    ├── RateLimitExceededError   → 429
    ├── StorageError             → 500
    └── InternalServerError      → 500
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class FieldViolation:
    """One failed constraint on one input field."""

    field: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class PhotoBrowserError(Exception):
    """
    Base exception for all anticipated (operational) failures.

    Attributes:
        message:  User-facing error description (returned as `error`)
        context:  Debug info for logs only, never returned to the client
    """

    status_code: int = 500
    kind: str = "internal"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(PhotoBrowserError):
    status_code = 400
    kind = "bad_request"
    default_message = "Bad request"


class ValidationError(BadRequestError):
    """
    Raised when request data fails a schema.

    Always carries the complete, ordered list of violations so the client can
    fix every field in one round trip.
    """

    kind = "validation"
    default_message = "Validation failed"

    def __init__(
        self,
        violations: List[FieldViolation],
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.violations = list(violations)


class UnauthorizedError(PhotoBrowserError):
    status_code = 401
    kind = "unauthorized"
    default_message = "Unauthorized"


class ForbiddenError(PhotoBrowserError):
    status_code = 403
    kind = "forbidden"
    default_message = "Forbidden"


class NotFoundError(PhotoBrowserError):
    status_code = 404
    kind = "not_found"
    default_message = "Resource not found"


class ConflictError(PhotoBrowserError):
    status_code = 409
    kind = "conflict"
    default_message = "Resource already exists"


class RateLimitExceededError(PhotoBrowserError):
    """
    Raised when a client exceeds one of the per-IP limiters.

    retry_after: seconds until the oldest counted request leaves the window
                 (sent as the Retry-After header)
    retry_hint:  human-readable window description, e.g. "15 minutes"
    """

    status_code = 429
    kind = "rate_limited"
    default_message = "Too many requests from this IP, please try again later."

    def __init__(
        self,
        retry_after: int,
        retry_hint: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
        self.retry_hint = retry_hint


class StorageError(PhotoBrowserError):
    """Image storage (local disk or remote bucket) failed; details stay in logs."""

    status_code = 500
    kind = "storage"
    default_message = "Image storage operation failed"


class InternalServerError(PhotoBrowserError):
    status_code = 500
    kind = "internal"
    default_message = "Internal server error"
