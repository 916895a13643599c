"""
Database connection management for shared battle sessions

Async SQLAlchemy 2.0 engine over PostgreSQL (asyncpg) in deployment and
SQLite (aiosqlite) for local play and tests.
"""

import logging
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from skillbattle.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def to_async_url(database_url: str) -> str:
    """Swap a plain driver URL for its async driver."""
    if database_url.startswith('postgresql://'):
        return database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    if database_url.startswith('sqlite://'):
        return database_url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
    return database_url


class DatabaseManager:
    """Manages database connections and sessions"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings
        self.async_engine = None
        self.async_session_factory = None
        self._initialized = False

    def initialize(self):
        """Initialize database connections"""
        if self._initialized:
            return

        settings = self.settings or get_settings()
        async_database_url = to_async_url(settings.database_url)
        engine_kwargs = {"echo": settings.database_echo}

        if async_database_url.startswith('sqlite'):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ':memory:' in async_database_url:
                # One shared connection so an in-memory database survives across sessions
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_pre_ping=True,  # Verify connections before using
                pool_size=20,
                max_overflow=20,
                pool_recycle=3600,  # Recycle connections after 1 hour
                pool_timeout=30,  # Timeout waiting for connection
            )

        self.async_engine = create_async_engine(async_database_url, **engine_kwargs)
        self.async_session_factory = async_sessionmaker(
            bind=self.async_engine,
            expire_on_commit=False
        )

        self._initialized = True
        logger.info("Database manager initialized successfully")

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session"""
        if not self._initialized:
            self.initialize()

        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_tables(self):
        """Create all tables (for development/testing)"""
        from skillbattle.models.battle_session_db import SessionBase

        if not self._initialized:
            self.initialize()

        async with self.async_engine.begin() as conn:
            await conn.run_sync(SessionBase.metadata.create_all)
            logger.info("Database tables created")

    async def drop_tables(self):
        """Drop all tables (for development/testing)"""
        from skillbattle.models.battle_session_db import SessionBase

        if not self._initialized:
            self.initialize()

        async with self.async_engine.begin() as conn:
            await conn.run_sync(SessionBase.metadata.drop_all)
            logger.info("Database tables dropped")

    async def cleanup(self):
        """Cleanup database connections"""
        if self.async_engine:
            await self.async_engine.dispose()

        self._initialized = False
        logger.info("Database connections closed")


# Create global database manager instance
db_manager = DatabaseManager()
