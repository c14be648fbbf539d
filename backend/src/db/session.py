"""Async SQLAlchemy engine and session management."""
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import Settings
from core.database_mode import DatabaseConfig, resolve_database_config


class Database:
    """
    Owns the engine (connection pool) and session factory for one database.

    Created once at process start by the application lifespan and stored on
    `app.state.database`; request handlers reach it through `get_async_session`.
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.engine = create_async_engine(url, echo=False, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


def create_database(settings: Settings) -> tuple[Database, DatabaseConfig]:
    """
    Resolve the database for the configured mode and build its connection pool.

    Raises:
        DatabaseConfigError: If the configuration is missing or unsafe.
    """
    config = resolve_database_config(settings)
    database = Database(
        config.url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    return database, config


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. This ensures atomic transactions
    per request - if anything fails, all changes are rolled back.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
