"""
Database session management with async SQLAlchemy.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from second_brain.config import Settings, get_settings
from second_brain.shared.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for every ORM model; ``Base.metadata`` is the schema."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Manages the engine, the pooled connections and session creation."""

    def __init__(
        self,
        database_url: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize database manager.

        Args:
            database_url: Optional database URL override.
            settings: Application settings (pool sizing, echo).
        """
        self._settings = settings or get_settings()
        self._database_url = database_url or self._settings.database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self._database_url.startswith("sqlite")

    def _engine_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "echo": self._settings.debug,
            "pool_pre_ping": True,
        }
        if self.is_sqlite:
            # In-memory SQLite lives and dies with one connection; share it.
            if ":memory:" in self._database_url or self._database_url.endswith("sqlite://"):
                options["poolclass"] = StaticPool
                options["connect_args"] = {"check_same_thread": False}
        else:
            options.update(
                pool_size=self._settings.db_pool_size,
                max_overflow=self._settings.db_max_overflow,
                pool_recycle=self._settings.db_pool_recycle_seconds,
                pool_timeout=self._settings.db_pool_timeout_seconds,
            )
        if "+asyncpg" in self._database_url:
            options["connect_args"] = {"timeout": self._settings.db_pool_timeout_seconds}
        return options

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_async_engine(self._database_url, **self._engine_options())
            if self.is_sqlite:
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Create a new database session; rolls back on any failure."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def _begin_ddl(self, conn: AsyncConnection) -> None:
        if self.is_sqlite:
            # pysqlite only opens transactions before DML; DDL needs an explicit one.
            await conn.exec_driver_sql("BEGIN")

    async def create_schema(self) -> None:
        """Create all tables and indexes in a single transaction.

        ``engine.begin()`` commits on success and rolls back everything on
        the first failing statement.
        """
        # Register every model on Base.metadata before create_all.
        import second_brain.models  # noqa: F401

        async with self.engine.begin() as conn:
            await self._begin_ddl(conn)
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized", extra={"tables": sorted(Base.metadata.tables)})

    async def drop_schema(self) -> None:
        """Drop all tables (children first)."""
        import second_brain.models  # noqa: F401

        async with self.engine.begin() as conn:
            await self._begin_ddl(conn)
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database schema dropped")

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's DatabaseManager.

    Services commit explicitly; anything left uncommitted is rolled back.
    """
    db_manager: DatabaseManager = request.app.state.db_manager
    async with db_manager.session() as session:
        yield session


__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_session",
]
