"""
Photo Browser API — Authentication
====================================

What:  Password hashing and stateless bearer tokens.
How:   passlib's bcrypt context for passwords; PyJWT HS256 tokens carrying
       `userId` (as a string), `email`, `iat` and `exp` (7 days by default).
Who:   AuthService issues tokens; `get_current_identity` guards every
       mutating route.

There are no refresh tokens, revocation lists or sessions: a token stays
valid until it expires.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request
from passlib.context import CryptContext

from photo_browser.config import settings
from photo_browser.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


@dataclass(frozen=True)
class TokenIdentity:
    """Identity embedded in a verified token."""

    user_id: int
    email: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def issue_token(identity: TokenIdentity, now: Optional[datetime] = None) -> str:
    """Sign a token for `identity`, expiring `jwt_expires_days` after `now`."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "userId": str(identity.user_id),
        "email": identity.email,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenIdentity:
    """
    Decode `token` and check signature and expiry.

    Raises:
        UnauthorizedError("Token expired"): valid signature, past `exp`
        UnauthorizedError("Invalid token"): anything else (malformed, unsigned,
            wrong key or algorithm, missing claims)
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token expired")
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Invalid token", context={"reason": str(exc)})

    user_id = payload.get("userId")
    email = payload.get("email")
    if not isinstance(user_id, str) or not user_id.isdigit() or not isinstance(email, str):
        raise UnauthorizedError("Invalid token", context={"reason": "missing identity claims"})
    return TokenIdentity(user_id=int(user_id), email=email)


def get_current_identity(request: Request) -> TokenIdentity:
    """
    FastAPI dependency: the caller's identity from `Authorization: Bearer <token>`.

    A missing header or another scheme is rejected before any decoding.
    """
    header = request.headers.get("Authorization")
    if not header or not header.startswith(BEARER_PREFIX):
        raise UnauthorizedError("No token provided")
    identity = verify_token(header[len(BEARER_PREFIX):])
    request.state.identity = identity
    return identity
