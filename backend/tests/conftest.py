"""
WikiMaps Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the test suite.
How:   Environment is pointed at SQLite before any wikimaps import; each test
       gets a fresh SQLite file created from the ORM metadata.

Fixtures:
    ├── db_session_factory: async_sessionmaker bound to a per-test SQLite file
    ├── db_session:         one AsyncSession for service-level tests
    ├── mock_db_session:    AsyncMock session for failure-path tests
    ├── test_client:        httpx AsyncClient wired to a fresh app whose
    │                       get_db_session dependency uses the test database
    └── sample_point_fields: form-style point fields
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

import wikimaps.models  # noqa: E402,F401
from wikimaps.database import Base, build_engine, get_db_session  # noqa: E402


@pytest_asyncio.fixture
async def db_session_factory(tmp_path):
    """
    Session factory over a throwaway SQLite database.

    NullPool gives every session its own connection, so the app's
    request sessions and a test's verification session behave like
    separate clients of the same store.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'wikimaps_test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with db_session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async session for simulating store failures.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.get = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_point_fields():
    return {
        "title": "Lookout",
        "description": "Best view of the bay",
        "image": "/images/lookout.jpg",
        "lat": "50.909",
        "long": "-122.145",
        "user_id": "alice",
    }


@pytest_asyncio.fixture
async def test_client(db_session_factory):
    """
    HTTPX AsyncClient talking to a fresh app over ASGITransport.

    Cookies persist on the client between requests, so `GET /login/<id>`
    logs the client in for the rest of the test.
    """
    from wikimaps.main import create_app

    app = create_app()

    async def override_db_session():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
