"""
Photo Browser API — Auth Routes
=================================

    POST /api/auth/register   auth-tier rate limit, 201
    POST /api/auth/login      auth-tier rate limit
    GET  /api/auth/me         bearer token

The auth tier allows 5 attempts per 15 minutes per IP by default, which is
what makes credential stuffing against /login impractical.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photo_browser.database import get_db_session
from photo_browser.middleware.rate_limit import rate_limit
from photo_browser.schemas.auth import (
    AuthResponse,
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
)
from photo_browser.schemas.common import ErrorResponse
from photo_browser.security import TokenIdentity, get_current_identity
from photo_browser.services.auth_service import auth_service
from photo_browser.services.user_service import user_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("auth"))],
    responses={
        400: {"description": "Validation failed", "model": ErrorResponse},
        409: {"description": "Email or username taken", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[Depends(rate_limit("auth"))],
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
        429: {"description": "Too many attempts", "model": ErrorResponse},
    },
    summary="Log in and receive a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, payload)


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "Token user no longer exists", "model": ErrorResponse},
    },
    summary="Profile of the authenticated user",
)
async def me(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUserResponse:
    user = await user_service.get_user(db, identity.user_id)
    return CurrentUserResponse(user=user)
