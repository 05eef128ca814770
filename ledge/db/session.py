"""
Async engine and session handling.

``Database`` owns one engine. Drivers open a short ``session()`` per unit
of work; API routes receive one per request through ``get_db``.

Responsibility: Manage database connections and sessions
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)
from sqlalchemy.pool import StaticPool
import logging

from ..config import settings

logger = logging.getLogger(__name__)


def engine_options(url: str) -> Dict[str, Any]:
    """Pool settings for ``url``.

    In-memory SQLite needs one shared connection or every session would see
    an empty database.
    """
    if url.startswith("sqlite"):
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.db.pool_size,
        "max_overflow": settings.db.max_overflow,
        "pool_timeout": settings.db.pool_timeout,
        "pool_recycle": settings.db.pool_recycle,
        "pool_pre_ping": True,
    }


class Database:
    """
    Engine plus session factory, created lazily by ``initialize()``.

    Example:
        database = Database("sqlite+aiosqlite://")
        await database.initialize()
        async with database.session() as session:
            session.add(model)
    """

    def __init__(self, url: Optional[str] = None):
        self.url = url
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_initialized(self) -> bool:
        return self.engine is not None

    async def initialize(self) -> None:
        if self.is_initialized:
            return

        url = self.url or settings.db.connection_string
        logger.info(f"Opening {url.split('://')[0]} database")

        self.engine = create_async_engine(url, echo=settings.db.echo, **engine_options(url))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def _require_engine(self) -> AsyncEngine:
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One transaction: committed when the block exits cleanly, rolled back
        (and the error re-raised) otherwise.
        """
        self._require_engine()
        async with self.session_factory() as session:
            try:
                yield session
                if session.in_transaction():
                    await session.commit()
            except Exception as e:
                logger.error(f"Rolling back session: {e}")
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        from .models import Base

        async with self._require_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ready")

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None


db = Database()


def get_database() -> Database:
    """Process-wide database, for drivers started from routes."""
    return db


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session on the process-wide database."""
    if not db.is_initialized:
        await db.initialize()
    async with db.session() as session:
        yield session
