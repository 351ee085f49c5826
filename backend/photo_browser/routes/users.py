"""
Photo Browser API — User Routes
=================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photo_browser.database import get_db_session
from photo_browser.routes.params import UserId
from photo_browser.schemas.auth import UserPublic
from photo_browser.schemas.common import ErrorResponse
from photo_browser.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "/{user_id}",
    response_model=UserPublic,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public profile of a user",
)
async def get_user(user_id: UserId, db: AsyncSession = Depends(get_db_session)) -> UserPublic:
    return await user_service.get_user(db, user_id)
