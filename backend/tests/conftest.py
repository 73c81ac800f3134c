"""
VidTube Backend — Test Configuration (conftest.py)
===================================================

Shared pytest fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    ├── engine:           fresh in-memory aiosqlite database with every table
    ├── session_factory:  async_sessionmaker bound to that engine
    ├── db_session:       one AsyncSession for service-level tests
    ├── make_user / make_video / make_tweet / make_comment: row factories
    ├── fake_media_host:  in-memory MediaHost patched into VideoService
    ├── upload_file:      builds starlette UploadFile objects
    ├── mock_db_session:  AsyncMock session for failure-path tests
    └── test_client:      httpx AsyncClient over ASGITransport, with the
                          session dependency pointed at the test database
"""

import io
import os
import tempfile
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

# Environment must be set before anything imports vidtube.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="vidtube_test_")
os.environ["MEDIA_BACKEND"] = "local"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.datastructures import Headers, UploadFile

from vidtube.database import Base, get_db_session
from vidtube.exceptions import MediaUploadError
from vidtube.models import Comment, Tweet, User, Video
from vidtube.services.media_base import MediaHost, UploadedMedia
from vidtube.services.media_service import resource_type_for

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """
    In-memory SQLite shared through one connection (StaticPool).

    pysqlite's own transaction handling breaks SAVEPOINT; the two listeners
    hand BEGIN over to SQLAlchemy so begin_nested() works as on PostgreSQL.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """AsyncMock standing in for AsyncSession when a test needs the store to fail."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Row Factories
# ══════════════════════════════════════════════════════════════════════════
# Each factory flushes (no commit) and stamps created_at from a counter so
# ordering by time is deterministic.

@pytest.fixture
def clock():
    ticks = count()

    def _next() -> datetime:
        return BASE_TIME + timedelta(minutes=next(ticks))

    return _next


@pytest.fixture
def make_user(db_session, clock):
    async def _make(username: Optional[str] = None, **overrides) -> User:
        name = username or f"user_{uuid4().hex[:8]}"
        stamp = clock()
        user = User(
            username=name,
            email=f"{name}@example.com",
            full_name=overrides.pop("full_name", name.replace("_", " ").title()),
            avatar=overrides.pop("avatar", f"https://cdn.test/avatars/{name}.png"),
            created_at=stamp,
            updated_at=stamp,
            **overrides,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_video(db_session, clock):
    async def _make(owner: Optional[User] = None, title: str = "Untitled", **overrides) -> Video:
        stamp = overrides.pop("created_at", None) or clock()
        video = Video(
            title=title,
            description=overrides.pop("description", f"About {title}"),
            video_file=overrides.pop("video_file", "https://cdn.test/v.mp4"),
            thumbnail=overrides.pop("thumbnail", "https://cdn.test/t.png"),
            video_file_public_id=overrides.pop("video_file_public_id", f"video-{uuid4().hex[:6]}"),
            thumbnail_public_id=overrides.pop("thumbnail_public_id", f"thumb-{uuid4().hex[:6]}"),
            duration=overrides.pop("duration", 60.0),
            views=overrides.pop("views", 0),
            is_published=overrides.pop("is_published", True),
            owner_id=overrides.pop("owner_id", None) or owner.id,
            created_at=stamp,
            updated_at=stamp,
        )
        db_session.add(video)
        await db_session.flush()
        return video

    return _make


@pytest.fixture
def make_tweet(db_session, clock):
    async def _make(owner: User, content: str = "hello") -> Tweet:
        stamp = clock()
        tweet = Tweet(content=content, owner_id=owner.id, created_at=stamp, updated_at=stamp)
        db_session.add(tweet)
        await db_session.flush()
        return tweet

    return _make


@pytest.fixture
def make_comment(db_session, clock):
    async def _make(video: Video, owner: User, content: str = "nice") -> Comment:
        stamp = clock()
        comment = Comment(
            content=content,
            video_id=video.id,
            owner_id=owner.id,
            created_at=stamp,
            updated_at=stamp,
        )
        db_session.add(comment)
        await db_session.flush()
        return comment

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Media
# ══════════════════════════════════════════════════════════════════════════

class FakeMediaHost(MediaHost):
    """
    Records uploads and deletes in memory. Extensions listed in fail_on make
    upload() raise MediaUploadError.
    """

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_on = set()
        self._ids = count(1)

    async def upload(self, local_path: str) -> UploadedMedia:
        ext = Path(local_path).suffix.lower()
        if ext in self.fail_on:
            raise MediaUploadError(context={"path": local_path})
        assert Path(local_path).exists()
        n = next(self._ids)
        self.uploads.append(local_path)
        kind = resource_type_for(ext)
        return UploadedMedia(
            url=f"https://cdn.test/{kind}/{n}{ext}",
            public_id=f"{kind}-{n}",
            resource_type=kind,
            duration=42.5 if kind == "video" else 0.0,
        )

    async def delete(self, public_id: str, resource_type: str) -> bool:
        self.deleted.append((public_id, resource_type))
        return True

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def fake_media_host():
    host = FakeMediaHost()
    with patch("vidtube.services.video_service.media_host", host):
        yield host


@pytest.fixture
def upload_file():
    def _make(filename: str, content: bytes = b"\x00\x01binary-data", content_type: str = "application/octet-stream"):
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, fake_media_host):
    """
    AsyncClient talking to the app in-process.

    Seed rows through db_session and commit before sending requests: the
    request sessions share the single in-memory connection.
    """
    from vidtube.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
