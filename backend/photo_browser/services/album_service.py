"""
Photo Browser API — Album Service
===================================

What:  Album listing, lookup and owner-only mutations.
Who:   Called by routes/albums.py; raises operational errors only, never
       builds responses.

Rules:
    - New ids are max(id) + 1 (see queries.next_id for the race).
    - Only the owner may update or delete.
    - An album that still holds photos cannot be deleted.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from photo_browser.exceptions import BadRequestError, ForbiddenError, NotFoundError
from photo_browser.models import Album, Photo
from photo_browser.schemas.album import (
    AlbumListResponse,
    AlbumOut,
    AlbumQuery,
    CreateAlbumRequest,
    UpdateAlbumRequest,
)
from photo_browser.schemas.common import Pagination
from photo_browser.security import TokenIdentity
from photo_browser.services.queries import next_id, sort_columns, title_contains

logger = logging.getLogger(__name__)


class AlbumService:
    async def _load(self, db: AsyncSession, album_id: int) -> Album:
        result = await db.execute(
            select(Album)
            .options(selectinload(Album.user))
            .where(Album.id == album_id)
            .execution_options(populate_existing=True)
        )
        album = result.scalar_one_or_none()
        if album is None:
            raise NotFoundError("Album not found", context={"album_id": album_id})
        return album

    async def _owned(self, db: AsyncSession, album_id: int, identity: TokenIdentity, action: str) -> Album:
        album = await self._load(db, album_id)
        if album.user_id != identity.user_id:
            raise ForbiddenError(
                f"You can only {action} your own albums",
                context={"album_id": album_id, "user_id": identity.user_id},
            )
        return album

    async def list_albums(self, db: AsyncSession, query: AlbumQuery) -> AlbumListResponse:
        """
        One page of albums plus the pagination envelope.

        Filters: `search` (title substring, case-insensitive) and `userId`.
        """
        conditions = []
        if query.search:
            conditions.append(title_contains(Album.title, query.search))
        if query.user_id is not None:
            conditions.append(Album.user_id == query.user_id)

        total = await db.scalar(select(func.count(Album.id)).where(*conditions))

        result = await db.execute(
            select(Album)
            .options(selectinload(Album.user))
            .where(*conditions)
            .order_by(*sort_columns(Album, query.sort, query.order))
            .offset(query.offset)
            .limit(query.limit)
        )
        albums = result.scalars().all()

        return AlbumListResponse(
            albums=[AlbumOut.model_validate(a) for a in albums],
            pagination=Pagination.build(query.page, query.limit, total or 0),
        )

    async def get_album(self, db: AsyncSession, album_id: int) -> AlbumOut:
        return AlbumOut.model_validate(await self._load(db, album_id))

    async def create_album(
        self, db: AsyncSession, identity: TokenIdentity, payload: CreateAlbumRequest
    ) -> AlbumOut:
        album = Album(
            id=await next_id(db, Album),
            title=payload.title,
            user_id=identity.user_id,
        )
        db.add(album)
        await db.flush()

        logger.info("Album created: id=%d by user %d", album.id, identity.user_id)
        return AlbumOut.model_validate(await self._load(db, album.id))

    async def update_album(
        self,
        db: AsyncSession,
        identity: TokenIdentity,
        album_id: int,
        payload: UpdateAlbumRequest,
    ) -> AlbumOut:
        album = await self._owned(db, album_id, identity, "update")

        if payload.title is not None:
            album.title = payload.title
            await db.flush()
            logger.info("Album %d renamed by user %d", album_id, identity.user_id)

        return AlbumOut.model_validate(await self._load(db, album_id))

    async def delete_album(self, db: AsyncSession, identity: TokenIdentity, album_id: int) -> None:
        album = await self._owned(db, album_id, identity, "delete")

        photo_count = await db.scalar(select(func.count(Photo.id)).where(Photo.album_id == album_id))
        if photo_count:
            raise BadRequestError(
                f"Cannot delete album. It contains {photo_count} photo(s). "
                "Please delete or move the photos first.",
                context={"album_id": album_id, "photo_count": photo_count},
            )

        await db.delete(album)
        await db.flush()
        logger.info("Album deleted: id=%d by user %d", album_id, identity.user_id)


# Singleton instance
album_service = AlbumService()
