"""
PinDrop Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── mock_db_session: AsyncMock session for pure-logic tests
    ├── db_engine:       in-memory SQLite engine with the full schema
    ├── db_session:      AsyncSession bound to db_engine
    ├── make_user:       factory inserting users straight into db_session
    ├── client:          HTTPX AsyncClient whose requests use db_engine
    └── auth_headers:    Authorization header builder for a user

The in-memory database lives on one shared connection (StaticPool), so the
test's own session and the sessions opened by API requests see the same data.
"""

import os

# Override settings BEFORE any app import: app.config builds its singleton
# at import time, and app.database creates its engine from it
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from typing import AsyncGenerator, Callable, Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.database import Base, get_db_session  # noqa: E402
from app.models.user import User  # noqa: E402
from app.security import create_access_token  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Mocked session
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_something(mock_db_session):
            mock_db_session.get.return_value = some_user
            result = await service.method(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real (in-memory) database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite only honours ON DELETE CASCADE with foreign keys switched on
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def make_user(db_session) -> Callable:
    """
    Factory that inserts and commits a user.

    Usage:
        alice = await make_user("alice", is_private=False)
    """
    async def _make_user(username: str, is_private: bool = True, **fields) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            full_name=fields.pop("full_name", username.title()),
            # Not a real hash; API tests that log in go through /register
            password_hash="not-a-real-hash",
            is_private=is_private,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGITransport.

    Each request gets its own session on the test engine, committed or
    rolled back exactly like app.database.get_db_session does.
    """
    from app.main import app

    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def _test_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}

    return _headers
