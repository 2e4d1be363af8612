"""Async engine and session lifecycle for the spend ledger database."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from helios_waterfall.core.config import settings

from .models import Base

logger = structlog.get_logger(__name__)

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


def to_async_url(url: str) -> str:
    """Point plain Postgres URLs at the asyncpg driver."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


class DatabaseSessionManager:
    """
    Owns the async engine used by SqlBudgetAccountant.

    `init()` is called once at start-up when budget_backend is "database";
    every ledger operation then opens its own short transaction through
    `session()`.
    """

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    def init(self, database_url: str | None = None) -> None:
        url = to_async_url(database_url or settings.database_url)

        options = {"echo": settings.debug, "pool_pre_ping": True}
        # SQLite uses a non-queue pool without sizing options
        if not url.startswith("sqlite"):
            options["pool_size"] = settings.db_pool_size
            options["max_overflow"] = settings.db_max_overflow

        self._engine = create_async_engine(url, **options)
        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create the ledger table if it does not exist yet."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("ledger_tables_ready")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One transaction: committed on exit, rolled back on error.

        Yields:
            An async database session
        """
        if self._sessionmaker is None:
            raise RuntimeError("Database not initialized. Call init() first.")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise


db_manager = DatabaseSessionManager()
