"""
Photo Browser API — Album Routes
==================================

    GET    /api/albums                   list (search, userId, sort, order, paging)
    GET    /api/albums/{id}              detail
    GET    /api/albums/{album_id}/photos photos of one album, plain array
    POST   /api/albums                   create (bearer), 201
    PUT    /api/albums/{id}              rename (bearer, owner)
    DELETE /api/albums/{id}              delete (bearer, owner, album must be empty)

Handlers only wire dependencies to AlbumService/PhotoService; every failure
is raised and formatted by the central error handlers.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photo_browser.database import get_db_session
from photo_browser.routes.params import AlbumId
from photo_browser.schemas.album import (
    AlbumListResponse,
    AlbumMessageResponse,
    AlbumOut,
    AlbumQuery,
    CreateAlbumRequest,
    UpdateAlbumRequest,
)
from photo_browser.schemas.common import ErrorResponse, MessageResponse, PageQuery
from photo_browser.schemas.photo import PhotoOut
from photo_browser.security import TokenIdentity, get_current_identity
from photo_browser.services.album_service import album_service
from photo_browser.services.photo_service import photo_service
from photo_browser.validation import query_validator

router = APIRouter(prefix="/api/albums", tags=["Albums"])

_NOT_FOUND = {404: {"description": "Album not found", "model": ErrorResponse}}
_OWNER_ONLY = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not the album owner", "model": ErrorResponse},
    **_NOT_FOUND,
}


@router.get("", response_model=AlbumListResponse, summary="List albums")
async def list_albums(
    query: AlbumQuery = Depends(query_validator(AlbumQuery)),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumListResponse:
    return await album_service.list_albums(db, query)


@router.get("/{album_id}", response_model=AlbumOut, responses=_NOT_FOUND, summary="Get an album")
async def get_album(album_id: AlbumId, db: AsyncSession = Depends(get_db_session)) -> AlbumOut:
    return await album_service.get_album(db, album_id)


@router.get(
    "/{album_id}/photos",
    response_model=List[PhotoOut],
    responses=_NOT_FOUND,
    summary="List the photos of an album",
)
async def list_album_photos(
    album_id: AlbumId,
    query: PageQuery = Depends(query_validator(PageQuery)),
    db: AsyncSession = Depends(get_db_session),
) -> List[PhotoOut]:
    return await photo_service.list_album_photos(db, album_id, query)


@router.post(
    "",
    status_code=201,
    response_model=AlbumMessageResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Create an album",
)
async def create_album(
    payload: CreateAlbumRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumMessageResponse:
    album = await album_service.create_album(db, identity, payload)
    return AlbumMessageResponse(message="Album created successfully", album=album)


@router.put("/{album_id}", response_model=AlbumMessageResponse, responses=_OWNER_ONLY, summary="Update an album")
async def update_album(
    album_id: AlbumId,
    payload: UpdateAlbumRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> AlbumMessageResponse:
    album = await album_service.update_album(db, identity, album_id, payload)
    return AlbumMessageResponse(message="Album updated successfully", album=album)


@router.delete(
    "/{album_id}",
    response_model=MessageResponse,
    responses={400: {"description": "Album still contains photos", "model": ErrorResponse}, **_OWNER_ONLY},
    summary="Delete an empty album",
)
async def delete_album(
    album_id: AlbumId,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await album_service.delete_album(db, identity, album_id)
    return MessageResponse(message="Album deleted successfully")
