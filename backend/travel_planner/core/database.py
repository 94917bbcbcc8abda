"""
Database engine and session management.

One async SQLAlchemy engine serves the whole process. SQLite (aiosqlite) is
the development and test store; PostgreSQL (asyncpg) is used in deployments.
Route handlers receive a request-scoped session from ``get_db``.
"""

import logging
import os
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from travel_planner.core.config import settings
from travel_planner.models.base import Base

logger = logging.getLogger(__name__)

TRUTHY = {"1", "true", "yes"}


def is_sqlite_url(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = make_url(database_url).database
    if not database or database == ":memory:":
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite ignores ON DELETE CASCADE unless enabled per connection
    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_async_engine(database_url: str = settings.database_url) -> AsyncEngine:
    """
    Create the async engine for ``database_url``.

    SQLite gets a single shared connection (StaticPool, which ``:memory:``
    requires) with foreign keys switched on. Other backends use the default
    pool with pre-ping so dropped server connections are replaced.
    """
    if not is_sqlite_url(database_url):
        return create_async_engine(database_url, echo=False, pool_pre_ping=True)

    ensure_sqlite_directory(database_url)
    engine = create_async_engine(
        database_url,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_sqlite_foreign_keys(engine)
    return engine


engine = get_async_engine()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def create_tables() -> None:
    """Create every table that does not exist yet."""
    from travel_planner import models  # noqa: F401 - registers the tables

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", extra={"tables": sorted(Base.metadata.tables)})


async def init_db() -> None:
    """
    Prepare the database at start-up.

    Tables are only created when ENABLE_DB_CREATE_ALL is set; deployed
    databases are expected to carry the schema already.
    """
    if os.getenv("ENABLE_DB_CREATE_ALL", "").lower() in TRUTHY:
        await create_tables()


async def close_db() -> None:
    await engine.dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.

    Commits when the handler returns, rolls back when it raises.

    Example:
        @router.get("/plans")
        async def list_plans(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Session generator for use outside FastAPI dependencies.

    Caller must explicitly commit or rollback. Used by the scripts.

    Example:
        async for session in get_session():
            ...
            await session.commit()
    """
    async with async_session_maker() as session:
        yield session
