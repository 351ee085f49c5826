"""
Photo Browser API — Auth Service
==================================

What:  Registration and login.
How:   Passwords are hashed/verified in the thread pool (bcrypt is CPU bound);
       successful calls return a signed token plus the public user fields.

Login answers "Invalid credentials" for an unknown email and for a wrong
password alike, so the response never reveals whether an account exists.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from photo_browser.exceptions import ConflictError, UnauthorizedError
from photo_browser.models import User
from photo_browser.schemas.auth import AuthResponse, AuthUser, LoginRequest, RegisterRequest
from photo_browser.security import TokenIdentity, hash_password, issue_token, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def _respond(self, user: User, message: str) -> AuthResponse:
        token = issue_token(TokenIdentity(user_id=user.id, email=user.email))
        return AuthResponse(message=message, token=token, user=AuthUser.model_validate(user))

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> AuthResponse:
        existing = await db.execute(
            select(User.id).where(or_(User.email == payload.email, User.username == payload.username))
        )
        if existing.first() is not None:
            raise ConflictError(
                "User with this email or username already exists",
                context={"email": payload.email, "username": payload.username},
            )

        hashed = await run_in_threadpool(hash_password, payload.password)
        user = User(
            name=payload.name,
            email=payload.email,
            username=payload.username,
            password=hashed,
            phone=payload.phone,
            website=payload.website,
            address=payload.address.model_dump(by_alias=True) if payload.address else None,
            company=payload.company.model_dump(by_alias=True) if payload.company else None,
        )
        db.add(user)
        # Surfaces a racing duplicate as IntegrityError → 409
        await db.flush()

        logger.info("User registered: id=%d username=%s", user.id, user.username)
        return self._respond(user, "User registered successfully")

    async def login(self, db: AsyncSession, payload: LoginRequest) -> AuthResponse:
        result = await db.execute(select(User).where(User.email == payload.email))
        user = result.scalar_one_or_none()

        if user is None or not await run_in_threadpool(verify_password, payload.password, user.password):
            logger.info("Failed login for %s", payload.email)
            raise UnauthorizedError("Invalid credentials")

        logger.info("User logged in: id=%d", user.id)
        return self._respond(user, "Login successful")


# Singleton instance
auth_service = AuthService()
