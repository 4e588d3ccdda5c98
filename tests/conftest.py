"""Shared pytest fixtures configured to use SQLite in-memory databases."""

import logging
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from noteledger.config import Settings, get_settings
from noteledger.core.cache import CacheInvalidationCoordinator, ResponseCache
from noteledger.core.models import BaseModel, Note, NoteVersion, User
from noteledger.core.redis_client import RedisClient
from noteledger.core.storage import LocalFileStorage
from noteledger.database import Database
from noteledger.main import create_app
from noteledger.security.jwt import create_access_token
from noteledger.security.password import hash_password

# Silence extremely verbose DEBUG logs from aiosqlite to keep test output readable
logging.getLogger("aiosqlite").setLevel(logging.WARNING)

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at SQLite in-memory and a temporary upload dir."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret-key",
        refresh_secret_key="test-refresh-secret-key",
        redis_url="redis://localhost:6379/15",
        upload_dir=str(tmp_path / "uploads"),
        log_dir=str(tmp_path / "logs"),
        auto_create_tables=False,
        rate_limit_requests=10_000,
    )


@pytest.fixture
async def test_engine(test_settings):
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        test_settings.database_url,
        poolclass=StaticPool,  # keep the same memory DB across connections
        connect_args={"check_same_thread": False},
    )

    # SQLite only enforces foreign keys (and so ON DELETE CASCADE) when asked to
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def offline_redis(test_settings):
    """A RedisClient that never connected; every call degrades to a no-op."""
    return RedisClient(test_settings)


@pytest.fixture
def coordinator(offline_redis):
    return CacheInvalidationCoordinator(offline_redis)


async def create_user(session: AsyncSession, username: str | None = None) -> User:
    username = username or f"user_{uuid4().hex[:8]}"
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        is_active=True,
    )
    session.add(user)
    await session.commit()
    return user


async def create_note(session: AsyncSession, owner: User, title="Test Note", content="body") -> Note:
    """Insert a note at version 1 together with its first history row."""
    note = Note(title=title, content=content, owner_id=owner.id, version=1)
    session.add(note)
    await session.flush()
    session.add(
        NoteVersion(note_id=note.id, version=1, title=title, content=content, changed_by=owner.id)
    )
    await session.commit()
    return note


@pytest.fixture
async def alice(test_session):
    return await create_user(test_session, "alice")


@pytest.fixture
async def bob(test_session):
    return await create_user(test_session, "bob")


@pytest.fixture
async def carol(test_session):
    return await create_user(test_session, "carol")


@pytest.fixture
def test_app(test_settings, test_engine, offline_redis, coordinator):
    """App wired to the test database, without running the lifespan."""
    app = create_app(test_settings)
    app.state.database = Database(test_engine)
    app.state.redis = offline_redis
    app.state.cache_coordinator = coordinator
    app.state.response_cache = ResponseCache(offline_redis, test_settings.cache_ttl_seconds)
    app.state.file_storage = LocalFileStorage(
        test_settings.upload_dir,
        test_settings.max_file_size_bytes,
        test_settings.allowed_mime_types,
    )
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(test_app):
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers_for(test_settings):
    """Build bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": str(user.id)}, settings=test_settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers
