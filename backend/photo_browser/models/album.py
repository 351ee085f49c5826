"""
Photo Browser API — Album SQLAlchemy Model
============================================

What:  ORM model for the `albums` table.

Table Design:
    - `id` is assigned by AlbumService as max(id) + 1 (1 for an empty table),
      not by a database sequence. The read-then-insert is not atomic: two
      concurrent creations can pick the same id, and the primary key then
      rejects the second insert (surfaced as 409).
    - An album owning photos cannot be deleted (enforced in the service).
"""

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_browser.database import Base
from photo_browser.models.user import utcnow

if TYPE_CHECKING:
    from photo_browser.models.photo import Photo
    from photo_browser.models.user import User


class Album(Base):
    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="albums")
    photos: Mapped[List["Photo"]] = relationship(back_populates="album")

    __table_args__ = (
        Index("idx_albums_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Album(id={self.id}, title='{self.title}', user_id={self.user_id})>"
