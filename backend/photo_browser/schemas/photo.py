"""
Photo Browser API — Photo Schemas
===================================

Upload fields arrive as multipart form strings, so `UploadPhotoForm` is
validated through `validation.validate()` rather than as a JSON body.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import Field, field_validator

from photo_browser.schemas.album import SortField, SortOrder
from photo_browser.schemas.common import (
    CamelModel,
    PageQuery,
    Pagination,
    UserSummary,
    check_length,
    numeric_string,
)


class UploadPhotoForm(CamelModel):
    title: str
    album_id: Annotated[int, numeric_string("Album ID")]

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return check_length(v, "Title", 1, 200)


class UpdatePhotoRequest(CamelModel):
    title: Optional[str] = None
    album_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_length(v, "Title", 1, 200)


class PhotoQuery(PageQuery):
    """Query string of GET /api/photos."""

    search: Optional[str] = Field(default=None, max_length=100)
    user_id: Optional[Annotated[int, numeric_string("User ID")]] = None
    album_id: Optional[Annotated[int, numeric_string("Album ID")]] = None
    sort: Optional[SortField] = None
    order: SortOrder = "asc"


class AlbumRef(CamelModel):
    id: int
    title: str


class PhotoOut(CamelModel):
    id: int
    title: str
    url: str
    thumbnail_url: str
    album_id: int
    user_id: int
    album: Optional[AlbumRef] = None
    user: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime


class PhotoListResponse(CamelModel):
    photos: List[PhotoOut]
    pagination: Pagination


class PhotoMessageResponse(CamelModel):
    message: str
    photo: PhotoOut
