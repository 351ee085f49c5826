"""
Photo Browser API — Auth & User Schemas
=========================================

Request bodies for registration/login and every public view of a user.
No response model here has a `password` field, so the hash can never be
serialized even when an ORM `User` is validated directly.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from photo_browser.schemas.common import CamelModel, check_length

_USERNAME = re.compile(r"^[a-zA-Z0-9_]+$")
_URL = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


class Address(CamelModel):
    street: str
    suite: str
    city: str
    zipcode: str


class Company(CamelModel):
    name: str
    catch_phrase: str
    bs: str


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    username: str
    password: str
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[Address] = None
    company: Optional[Company] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return check_length(v, "Name", 2, 100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        check_length(v, "Username", 3, 30)
        if not _USERNAME.match(v):
            raise ValueError("Username can only contain letters, numbers, and underscores")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        if len(v) > 100:
            raise ValueError("Password must not exceed 100 characters")
        return v

    @field_validator("website")
    @classmethod
    def validate_website(cls, v: Optional[str]) -> Optional[str]:
        # Empty string is accepted and means "no website"
        if v and not _URL.match(v):
            raise ValueError("Invalid URL")
        return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthUser(CamelModel):
    id: int
    name: str
    email: str
    username: str


class AuthResponse(CamelModel):
    """Returned by register (201) and login (200)."""

    message: str
    token: str
    user: AuthUser


class UserPublic(CamelModel):
    """Full profile minus the password hash."""

    id: int
    name: str
    email: str
    username: str
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[Address] = None
    company: Optional[Company] = None
    created_at: datetime
    updated_at: datetime


class CurrentUserResponse(CamelModel):
    user: UserPublic
