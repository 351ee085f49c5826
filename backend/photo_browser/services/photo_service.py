"""
Photo Browser API — Photo Service
===================================

What:  Photo listing, lookup, upload and owner-only mutations.
Who:   Called by routes/photos.py and routes/albums.py.

Upload Workflow:
    1. Validate the file (type, size, non-empty)
    2. Check the target album exists                → 404
    3. Render main image + thumbnail (thread pool)  → 400 if undecodable
    4. Upload main image, then thumbnail (sequential)
    5. Assign id = max(id) + 1 and insert the row
    If anything fails after an upload, the uploaded assets are removed again
    (best effort) and the original error propagates.

Delete Workflow:
    Remote asset removal is a non-fatal sub-operation: each failure is logged
    as a warning, and the row is deleted regardless.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from photo_browser.config import settings
from photo_browser.exceptions import ForbiddenError, NotFoundError, StorageError
from photo_browser.image_processing import process_image, validate_upload
from photo_browser.models import Album, Photo
from photo_browser.schemas.common import PageQuery, Pagination
from photo_browser.schemas.photo import (
    PhotoListResponse,
    PhotoOut,
    PhotoQuery,
    UpdatePhotoRequest,
    UploadPhotoForm,
)
from photo_browser.security import TokenIdentity
from photo_browser.services.queries import next_id, sort_columns, title_contains
from photo_browser.services.storage import ImageStorage, StoredAsset

logger = logging.getLogger(__name__)


class PhotoService:
    @property
    def main_folder(self) -> str:
        return settings.storage_folder

    @property
    def thumbnail_folder(self) -> str:
        return f"{settings.storage_folder}/thumbnails"

    def _select(self):
        return select(Photo).options(selectinload(Photo.album), selectinload(Photo.user))

    async def _load(self, db: AsyncSession, photo_id: int) -> Photo:
        result = await db.execute(
            self._select()
            .where(Photo.id == photo_id)
            .execution_options(populate_existing=True)
        )
        photo = result.scalar_one_or_none()
        if photo is None:
            raise NotFoundError("Photo not found", context={"photo_id": photo_id})
        return photo

    async def _owned(self, db: AsyncSession, photo_id: int, identity: TokenIdentity, action: str) -> Photo:
        photo = await self._load(db, photo_id)
        if photo.user_id != identity.user_id:
            raise ForbiddenError(
                f"You can only {action} your own photos",
                context={"photo_id": photo_id, "user_id": identity.user_id},
            )
        return photo

    async def _require_album(self, db: AsyncSession, album_id: int) -> None:
        if await db.get(Album, album_id) is None:
            raise NotFoundError("Album not found", context={"album_id": album_id})

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_photos(self, db: AsyncSession, query: PhotoQuery) -> PhotoListResponse:
        conditions = []
        if query.search:
            conditions.append(title_contains(Photo.title, query.search))
        if query.user_id is not None:
            conditions.append(Photo.user_id == query.user_id)
        if query.album_id is not None:
            conditions.append(Photo.album_id == query.album_id)

        total = await db.scalar(select(func.count(Photo.id)).where(*conditions))

        result = await db.execute(
            self._select()
            .where(*conditions)
            .order_by(*sort_columns(Photo, query.sort, query.order))
            .offset(query.offset)
            .limit(query.limit)
        )
        return PhotoListResponse(
            photos=[PhotoOut.model_validate(p) for p in result.scalars().all()],
            pagination=Pagination.build(query.page, query.limit, total or 0),
        )

    async def list_album_photos(self, db: AsyncSession, album_id: int, query: PageQuery) -> List[PhotoOut]:
        """One page of an album's photos as a plain list (no envelope)."""
        await self._require_album(db, album_id)
        result = await db.execute(
            self._select()
            .where(Photo.album_id == album_id)
            .order_by(Photo.id.asc())
            .offset(query.offset)
            .limit(query.limit)
        )
        return [PhotoOut.model_validate(p) for p in result.scalars().all()]

    async def get_photo(self, db: AsyncSession, photo_id: int) -> PhotoOut:
        return PhotoOut.model_validate(await self._load(db, photo_id))

    # ── Writes ────────────────────────────────────────────────────────────

    async def upload_photo(
        self,
        db: AsyncSession,
        storage: ImageStorage,
        identity: TokenIdentity,
        form: UploadPhotoForm,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> PhotoOut:
        validate_upload(filename, content_type, content)
        await self._require_album(db, form.album_id)

        rendered = await run_in_threadpool(process_image, content)

        uploaded: List[StoredAsset] = []
        try:
            main = await storage.upload(rendered.main, self.main_folder)
            uploaded.append(main)
            thumbnail = await storage.upload(rendered.thumbnail, self.thumbnail_folder)
            uploaded.append(thumbnail)

            photo = Photo(
                id=await next_id(db, Photo),
                title=form.title,
                url=main.url,
                thumbnail_url=thumbnail.url,
                album_id=form.album_id,
                user_id=identity.user_id,
            )
            db.add(photo)
            await db.flush()
        except Exception:
            await self._discard(storage, uploaded)
            raise

        logger.info(
            "Photo uploaded: id=%d album=%d by user %d (%d bytes in)",
            photo.id, form.album_id, identity.user_id, len(content),
        )
        return PhotoOut.model_validate(await self._load(db, photo.id))

    async def update_photo(
        self,
        db: AsyncSession,
        identity: TokenIdentity,
        photo_id: int,
        payload: UpdatePhotoRequest,
    ) -> PhotoOut:
        photo = await self._owned(db, photo_id, identity, "update")

        changed = False
        if payload.title is not None:
            photo.title = payload.title
            changed = True
        if payload.album_id is not None and payload.album_id != photo.album_id:
            await self._require_album(db, payload.album_id)
            photo.album_id = payload.album_id
            changed = True

        if changed:
            await db.flush()
            logger.info("Photo %d updated by user %d", photo_id, identity.user_id)
        return PhotoOut.model_validate(await self._load(db, photo_id))

    async def delete_photo(
        self, db: AsyncSession, storage: ImageStorage, identity: TokenIdentity, photo_id: int
    ) -> None:
        photo = await self._owned(db, photo_id, identity, "delete")

        await self._remove_remote_assets(storage, photo)

        await db.delete(photo)
        await db.flush()
        logger.info("Photo deleted: id=%d by user %d", photo_id, identity.user_id)

    # ── Best-effort storage cleanup ───────────────────────────────────────

    async def _remove_remote_assets(self, storage: ImageStorage, photo: Photo) -> None:
        """Delete both renditions; failures are logged and never raised."""
        for label, url in (("image", photo.url), ("thumbnail", photo.thumbnail_url)):
            try:
                await storage.delete(url)
            except StorageError as e:
                logger.warning(
                    "Could not delete %s of photo %d (%s): %s | Context: %s",
                    label, photo.id, url, e.message, e.context,
                )

    async def _discard(self, storage: ImageStorage, assets: List[StoredAsset]) -> None:
        for asset in assets:
            try:
                await storage.delete(asset.url)
            except StorageError as e:
                logger.warning("Could not remove orphaned upload %s: %s", asset.key, e.message)


# Singleton instance
photo_service = PhotoService()
