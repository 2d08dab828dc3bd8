# vidshare/app/database.py
"""
Database Configuration and Session Management
Uses SQLAlchemy with async support

The manager is created once at startup and handed to whoever needs storage;
there is no module-level engine.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from vidshare.app.config import Config, get_config
from vidshare.app.models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Owns the async engine (the connection pool) and the session factory

    Usage:
        db = DatabaseManager(config)
        await db.create_tables()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.engine: AsyncEngine = self._create_engine()
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def _create_engine(self) -> AsyncEngine:
        settings = self.config.database
        kwargs = {"echo": settings.echo}

        if settings.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in settings.url:
                # every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_size"] = settings.pool_size
            kwargs["max_overflow"] = settings.max_overflow

        return create_async_engine(settings.url, **kwargs)

    async def create_tables(self) -> None:
        """Create all tables defined by models"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("✅ Database tables created successfully")
        except Exception as e:
            logger.error(f"❌ Failed to create database tables: {e}")
            raise

    async def drop_tables(self) -> None:
        """Drop all tables (development/testing only)"""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.drop_all)
            logger.warning("⚠️  All tables dropped")
        except Exception as e:
            logger.error(f"❌ Failed to drop tables: {e}")
            raise

    async def ping(self) -> bool:
        """Round-trip a trivial statement"""
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar_one() == 1

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Per-request session

        Yields:
            AsyncSession bound to the shared pool
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose the pool at shutdown"""
        await self.engine.dispose()
        logger.info("🔌 Database connections closed")
