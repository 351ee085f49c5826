"""
Photo Browser API — Shared Schema Building Blocks
===================================================

What:  Base model, reusable field checks, the pagination envelope and the
       small response models shared by every resource.
How:   Every schema inherits `CamelModel`: Python attributes stay snake_case,
       JSON keys are camelCase (`thumbnail_url` ↔ `thumbnailUrl`), and ORM
       objects can be validated directly (`from_attributes`).
"""

import math
import re
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

_NUMERIC = re.compile(r"^\d+$")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 18
MAX_LIMIT = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def check_length(value: str, label: str, min_length: int, max_length: int) -> str:
    """Length check with a readable message; whitespace-only counts as empty."""
    if not value.strip():
        raise ValueError(f"{label} is required")
    if len(value) < min_length:
        raise ValueError(f"{label} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValueError(f"{label} must not exceed {max_length} characters")
    return value


def numeric_string(label: str):
    """
    Before-validator for query/form values that must be digit-only strings.

    Ints pass through untouched so schemas can also be built from Python.
    """

    def parse(value):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and _NUMERIC.match(value):
            return int(value)
        raise ValueError(f"{label} must be a number")

    return BeforeValidator(parse)


PageNumber = Annotated[int, numeric_string("Page"), Field(ge=1)]
PageLimit = Annotated[int, numeric_string("Limit"), Field(ge=1, le=MAX_LIMIT)]


class PageQuery(CamelModel):
    """`_page` / `_limit` query parameters, defaulted when absent."""

    page: PageNumber = Field(default=DEFAULT_PAGE, alias="_page")
    limit: PageLimit = Field(default=DEFAULT_LIMIT, alias="_limit")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class Pagination(CamelModel):
    """
    Pagination envelope returned next to every list.

    total_pages = ceil(total_count / limit); an empty result has 0 pages.
    """

    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / limit)
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class MessageResponse(CamelModel):
    message: str


class UserSummary(CamelModel):
    """Owner info embedded in album and photo responses."""

    id: int
    name: str
    email: str


class ErrorDetail(CamelModel):
    field: str
    message: str


class ErrorResponse(CamelModel):
    """Shape of every error body (documentation only; handlers build dicts)."""

    error: str
    details: Optional[List[ErrorDetail]] = None


class HealthResponse(CamelModel):
    status: str = Field(description="Always 'OK' while the process serves requests")
    message: str
