"""
Photo Browser API — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite,
       StaticPool), a fresh app from `create_app()` (so rate limiter counters
       start at zero) and local image storage under pytest's tmp_path.

Fixture Hierarchy:
    db_engine ── session_factory ── app ── client
                                  └─ storage
    Helpers (callables): create_user, create_album, create_photo, make_image

Users are inserted straight into the database and given tokens with
`issue_token`, so test setup never spends auth-tier rate limit budget.
"""

import os
import tempfile
from io import BytesIO
from typing import AsyncGenerator

# Override settings for testing BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="photo_browser_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from photo_browser.database import Base, get_db_session
from photo_browser.main import create_app
from photo_browser.models import Album, Photo, User
from photo_browser.security import TokenIdentity, hash_password, issue_token
from photo_browser.services.queries import next_id
from photo_browser.services.storage import LocalImageStorage, get_image_storage


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


# ══════════════════════════════════════════════════════════════════════════
# Application
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def storage(tmp_path) -> LocalImageStorage:
    store = LocalImageStorage(str(tmp_path / "storage"), "/api/files")
    store.ensure_root()
    return store


@pytest_asyncio.fixture
async def app(session_factory, storage):
    """Fresh application wired to the per-test database and storage."""
    application = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_image_storage] = lambda: storage
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX client talking to the app in-process.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ══════════════════════════════════════════════════════════════════════════
# Data helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def create_user(session_factory):
    """
    Insert a user and return `(user, token)`.

    Password is always "secret123".
    """
    counter = {"n": 0}

    async def _create(name: str = None, email: str = None, username: str = None, password: str = "secret123"):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            username=username or f"user_{n}",
            password=hash_password(password),
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        token = issue_token(TokenIdentity(user_id=user.id, email=user.email))
        return user, token

    return _create


@pytest.fixture
def create_album(session_factory):
    async def _create(user: User, title: str = "Holiday", album_id: int = None) -> Album:
        async with session_factory() as session:
            if album_id is None:
                album_id = await next_id(session, Album)
            album = Album(id=album_id, title=title, user_id=user.id)
            session.add(album)
            await session.commit()
        return album

    return _create


@pytest.fixture
def create_photo(session_factory):
    """Insert a photo row directly (no image processing or storage)."""

    async def _create(user: User, album: Album, title: str = "Sunset", photo_id: int = None) -> Photo:
        async with session_factory() as session:
            if photo_id is None:
                photo_id = await next_id(session, Photo)
            photo = Photo(
                id=photo_id,
                title=title,
                url=f"/api/files/photo-browser/{photo_id}.jpg",
                thumbnail_url=f"/api/files/photo-browser/thumbnails/{photo_id}.jpg",
                album_id=album.id,
                user_id=user.id,
            )
            session.add(photo)
            await session.commit()
        return photo

    return _create


@pytest.fixture
def make_image():
    """Encode a solid-colour Pillow image; returns bytes."""

    def _make(width: int = 320, height: int = 240, mode: str = "RGB", fmt: str = "PNG") -> bytes:
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
        image = Image.new(mode if mode != "P" else "RGB", (width, height), color)
        if mode == "P":
            image = image.convert("P")
        buffer = BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make
