"""
WikiMaps Backend: Database Session Management
=============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling and provides a session
       dependency that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling:
    pool_size / max_overflow come from settings (PostgreSQL only).
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.
    SQLite URLs (local development, tests) skip pool options and get
    foreign key enforcement switched on per connection.
"""

from typing import Any, AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wikimaps.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection: DBAPIConnection, _record: Any) -> None:
    # SQLite ignores REFERENCES clauses unless this pragma is on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **options: Any) -> AsyncEngine:
    """
    Create an async engine for `url`.

    SQLite engines get a connect hook enabling foreign keys so that
    points.map_id -> maps.id is enforced the same way PostgreSQL does.
    """
    new_engine = create_async_engine(url, **options)
    if url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url, **settings.engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: ORM attributes stay readable after a service commits
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with Base.metadata, which Alembic reads for
    autogenerate and the test suite uses for create_all().
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything the services left pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Write operations in the services commit their own unit of work, so the
    commit here is normally a no-op.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections. Called from the lifespan shutdown."""
    await engine.dispose()
