"""
Photo Browser API — Album Schemas
===================================
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator

from photo_browser.schemas.common import (
    CamelModel,
    PageQuery,
    Pagination,
    UserSummary,
    check_length,
    numeric_string,
)

SortField = Literal["title", "createdAt", "updatedAt"]
SortOrder = Literal["asc", "desc"]


class CreateAlbumRequest(CamelModel):
    title: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return check_length(v, "Title", 1, 200)


class UpdateAlbumRequest(CamelModel):
    title: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_length(v, "Title", 1, 200)


class AlbumQuery(PageQuery):
    """Query string of GET /api/albums. Unknown keys are ignored."""

    search: Optional[str] = Field(default=None, max_length=100)
    user_id: Optional[Annotated[int, numeric_string("User ID")]] = None
    sort: Optional[SortField] = None
    order: SortOrder = "asc"


class AlbumOut(CamelModel):
    id: int
    title: str
    user_id: int
    user: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class AlbumListResponse(CamelModel):
    albums: List[AlbumOut]
    pagination: Pagination


class AlbumMessageResponse(CamelModel):
    """Returned by create (201) and update."""

    message: str
    album: AlbumOut
