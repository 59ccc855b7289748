"""Database session management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from wallspot.config import DatabaseSettings

logger = logging.getLogger(__name__)


class Database:
    """Database connection and session manager."""

    def __init__(self, settings: DatabaseSettings) -> None:
        """Initialize database with settings."""
        self.settings = settings

        engine_kwargs: dict[str, Any] = {
            "echo": settings.echo,
            "pool_pre_ping": settings.pool_pre_ping,
        }

        # Pool sizing only makes sense for server databases
        if settings.url.startswith(("postgresql", "mysql")):
            engine_kwargs.update(
                {
                    "pool_size": settings.pool_size,
                    "max_overflow": settings.max_overflow,
                    "pool_timeout": settings.pool_timeout,
                    "pool_recycle": settings.pool_recycle,
                }
            )
        elif "sqlite" in settings.url:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}

        self._engine = create_async_engine(settings.url, **engine_kwargs)

        # wallpaper_resolutions relies on ON DELETE CASCADE
        if "sqlite" in settings.url:
            self._enable_sqlite_foreign_keys()

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def _enable_sqlite_foreign_keys(self) -> None:
        """Enable foreign key constraints for SQLite (off by default)."""

        @event.listens_for(self._engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session (FastAPI dependency style)."""
        async with self.session_scope() as session:
            yield session

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope: commit on success, rollback on any error."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Intentionally broad - every failure must roll back, then re-raise
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self._engine.dispose()

    async def create_tables(self) -> None:
        """Create all tables (for testing and first start only)."""
        from wallspot.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
