"""
Photo Browser API — Photo SQLAlchemy Model
============================================

What:  ORM model for the `photos` table.

Lifecycle:
    1. Image is validated, resized, and both renditions are uploaded
    2. Only then is the row inserted, with id = max(id) + 1
    3. Title and album may be changed by the owner
    4. Deletion removes both remote assets (best effort), then the row

`url` and `thumbnail_url` are the public URLs returned by the storage
backend; the storage key is recovered from them when deleting.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_browser.database import Base
from photo_browser.models.user import utcnow

if TYPE_CHECKING:
    from photo_browser.models.album import Album
    from photo_browser.models.user import User


class Photo(Base):
    __tablename__ = "photos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    thumbnail_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    album_id: Mapped[int] = mapped_column(ForeignKey("albums.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    album: Mapped["Album"] = relationship(back_populates="photos")
    user: Mapped["User"] = relationship(back_populates="photos")

    __table_args__ = (
        Index("idx_photos_album_id", "album_id"),
        Index("idx_photos_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Photo(id={self.id}, title='{self.title}', album_id={self.album_id})>"
