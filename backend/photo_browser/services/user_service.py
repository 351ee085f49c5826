"""
Photo Browser API — User Service
==================================
"""

from sqlalchemy.ext.asyncio import AsyncSession

from photo_browser.exceptions import NotFoundError
from photo_browser.models import User
from photo_browser.schemas.auth import UserPublic


class UserService:
    async def get_user(self, db: AsyncSession, user_id: int) -> UserPublic:
        """Public profile (no password) or NotFoundError."""
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found", context={"user_id": user_id})
        return UserPublic.model_validate(user)


# Singleton instance
user_service = UserService()
