# logbook/db/session.py
"""
Database session and initialization utilities.

We use:
- SQLAlchemy async engine + AsyncSession for request handling
- SQLite via aiosqlite driver by default
- A synchronous engine/session pair for scripts and test fixtures

Key points:
- `init_db()` creates tables and applies SQLite pragmas.
- `get_session()` is a FastAPI dependency that yields an AsyncSession.
"""

from __future__ import annotations

import logging
import os
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import create_engine, event, make_url, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from logbook.core.config import settings
from logbook.db.models import Base

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def _engine_kwargs(url: str) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": False, "future": True}
    if _is_sqlite(url):
        # SQLite connections are cheap; never share one across event loops.
        kwargs["poolclass"] = NullPool
    return kwargs


def _sync_database_url(url: str) -> str:
    """
    Convert the async SQLite URL (sqlite+aiosqlite:///) into a sync-friendly URL.
    """
    if url.startswith("sqlite+aiosqlite"):
        return "sqlite" + url[len("sqlite+aiosqlite") :]
    return url


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,  # rows are serialized after commit
    class_=AsyncSession,
)

sync_engine = create_engine(
    _sync_database_url(settings.DATABASE_URL),
    **_engine_kwargs(settings.DATABASE_URL),
)
SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    expire_on_commit=False,
    class_=Session,
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if _is_sqlite(settings.DATABASE_URL):
    # foreign_keys is a per-connection pragma
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    event.listen(sync_engine, "connect", _enable_sqlite_foreign_keys)


def _ensure_sqlite_directory(url: str) -> None:
    database = make_url(url).database
    if not database or database == ":memory:":
        return
    directory = os.path.dirname(os.path.abspath(database))
    os.makedirs(directory, exist_ok=True)


async def init_db() -> None:
    """
    Initialize database schema and apply SQLite pragmas.

    Pragmas:
    - journal_mode=WAL: readers don't block the writer
    - synchronous=NORMAL: good balance for durability vs speed
    """
    if _is_sqlite(settings.DATABASE_URL):
        _ensure_sqlite_directory(settings.DATABASE_URL)

    async with engine.begin() as conn:
        if _is_sqlite(settings.DATABASE_URL):
            await conn.execute(text("PRAGMA journal_mode=WAL;"))
            await conn.execute(text("PRAGMA synchronous=NORMAL;"))

        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database ready (%s)", make_url(settings.DATABASE_URL).render_as_string(hide_password=True))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a scoped AsyncSession.

    Usage:
        @router.get(...)
        async def handler(session: AsyncSession = Depends(get_session)):
            ...

    Transactions are controlled explicitly in route/service logic.
    """
    async with AsyncSessionLocal() as session:
        yield session
