"""Async engine and session handling for the load test store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stampede.db.tables import Base

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Background runs write while requests read; wait for the lock instead of
# failing with "database is locked".
SQLITE_BUSY_TIMEOUT_MS = 5_000


def _sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


class Database:
    """
    Owns the async engine and hands out transactional sessions.

    Example:
        db = Database("sqlite+aiosqlite:///stampede.db")
        await db.connect()
        await db.create_tables()

        async with db.session() as session:
            record = await LoadTestRepository(session).get_by_id(test_id)

        await db.disconnect()
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
    ) -> None:
        """
        Args:
            url: SQLAlchemy async URL (``sqlite+aiosqlite://`` or
                ``postgresql+asyncpg://``)
            echo: Log every SQL statement
            pool_size: Pool size; SQLite ignores it
            max_overflow: Connections allowed above pool_size; SQLite ignores it
        """
        self._url = url
        self._echo = echo
        self._pool_size = pool_size
        self._max_overflow = max_overflow

        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_sqlite(self) -> bool:
        return self._url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        engine_kwargs: dict[str, Any] = {"echo": self._echo}
        if not self.is_sqlite:
            engine_kwargs.update(
                pool_size=self._pool_size,
                max_overflow=self._max_overflow,
                pool_pre_ping=True,
            )
        self._engine = create_async_engine(self._url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _sqlite_pragmas)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def disconnect(self) -> None:
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_tables(self) -> None:
        """Create any missing tables. Existing tables are left alone."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> None:
        """Round-trip a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session that commits when the block exits cleanly, else rolls back."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


_database: Database | None = None


def get_database() -> Database:
    """The process-wide database set up by ``init_database``."""
    if _database is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _database


def init_database(url: str, **kwargs: Any) -> Database:
    """Create the process-wide database. Call ``connect()`` on the result."""
    global _database
    _database = Database(url, **kwargs)
    return _database
