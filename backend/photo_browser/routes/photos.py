"""
Photo Browser API — Photo Routes
==================================

    GET    /api/photos          list (search, userId, albumId, sort, order, paging)
    GET    /api/photos/{id}     detail
    POST   /api/photos          multipart upload (bearer, upload-tier limit), 201
    PUT    /api/photos/{id}     title / album change (bearer, owner)
    DELETE /api/photos/{id}     delete record and both images (bearer, owner)

Upload request (multipart/form-data):
    image    the file (jpeg, jpg, png, gif, webp; ≤ 5MB)
    title    1-200 characters
    albumId  numeric string of an existing album
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from photo_browser.config import settings
from photo_browser.database import get_db_session
from photo_browser.exceptions import BadRequestError
from photo_browser.middleware.rate_limit import rate_limit
from photo_browser.routes.params import PhotoId
from photo_browser.schemas.common import ErrorResponse, MessageResponse
from photo_browser.schemas.photo import (
    PhotoListResponse,
    PhotoMessageResponse,
    PhotoOut,
    PhotoQuery,
    UpdatePhotoRequest,
    UploadPhotoForm,
)
from photo_browser.security import TokenIdentity, get_current_identity
from photo_browser.services.photo_service import photo_service
from photo_browser.services.storage import ImageStorage, get_image_storage
from photo_browser.validation import query_validator, validate

router = APIRouter(prefix="/api/photos", tags=["Photos"])

UPLOAD_FIELDS = ("title", "albumId")

_NOT_FOUND = {404: {"description": "Photo not found", "model": ErrorResponse}}
_OWNER_ONLY = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not the photo owner", "model": ErrorResponse},
    **_NOT_FOUND,
}


@router.get("", response_model=PhotoListResponse, summary="List photos")
async def list_photos(
    query: PhotoQuery = Depends(query_validator(PhotoQuery)),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoListResponse:
    return await photo_service.list_photos(db, query)


@router.get("/{photo_id}", response_model=PhotoOut, responses=_NOT_FOUND, summary="Get a photo")
async def get_photo(photo_id: PhotoId, db: AsyncSession = Depends(get_db_session)) -> PhotoOut:
    return await photo_service.get_photo(db, photo_id)


@router.post(
    "",
    status_code=201,
    response_model=PhotoMessageResponse,
    dependencies=[Depends(rate_limit("upload"))],
    responses={
        400: {"description": "Invalid form or image", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
        429: {"description": "Upload limit reached", "model": ErrorResponse},
    },
    summary="Upload a photo",
)
async def upload_photo(
    request: Request,
    identity: TokenIdentity = Depends(get_current_identity),
    image: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    storage: ImageStorage = Depends(get_image_storage),
) -> PhotoMessageResponse:
    """
    Validate the form fields, then hand the file to PhotoService.

    `title` and `albumId` are read from the raw form: FastAPI's Form()
    turns an empty string into "missing", which would hide the schema's
    own messages. Absent fields are left out so they are reported as
    required rather than as wrongly typed.
    """
    raw = await request.form()
    fields = {name: raw[name] for name in UPLOAD_FIELDS if isinstance(raw.get(name), str)}
    form = validate(UploadPhotoForm, fields).unwrap()

    if image is None:
        raise BadRequestError("Image file is required")
    # One byte past the limit is enough for validate_upload to reject it
    content = await image.read(settings.max_upload_size + 1)

    photo = await photo_service.upload_photo(
        db,
        storage,
        identity,
        form,
        filename=image.filename,
        content_type=image.content_type,
        content=content,
    )
    return PhotoMessageResponse(message="Photo uploaded successfully", photo=photo)


@router.put("/{photo_id}", response_model=PhotoMessageResponse, responses=_OWNER_ONLY, summary="Update a photo")
async def update_photo(
    photo_id: PhotoId,
    payload: UpdatePhotoRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoMessageResponse:
    photo = await photo_service.update_photo(db, identity, photo_id, payload)
    return PhotoMessageResponse(message="Photo updated successfully", photo=photo)


@router.delete("/{photo_id}", response_model=MessageResponse, responses=_OWNER_ONLY, summary="Delete a photo")
async def delete_photo(
    photo_id: PhotoId,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    storage: ImageStorage = Depends(get_image_storage),
) -> MessageResponse:
    await photo_service.delete_photo(db, storage, identity, photo_id)
    return MessageResponse(message="Photo deleted successfully")
