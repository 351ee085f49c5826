"""
Photo Browser API — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Created by registration; read by login, /auth/me and /users/{id}.

`password` holds a bcrypt hash and is never part of any response schema.
`address` and `company` are optional nested profile objects stored as JSON.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from photo_browser.database import Base

if TYPE_CHECKING:
    from photo_browser.models.album import Album
    from photo_browser.models.photo import Photo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # {"street", "suite", "city", "zipcode"}
    address: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    # {"name", "catchPhrase", "bs"}
    company: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    albums: Mapped[List["Album"]] = relationship(back_populates="user")
    photos: Mapped[List["Photo"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
