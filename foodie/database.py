"""
Async SQLAlchemy plumbing: engine, session factory, declarative base.

PostgreSQL (psycopg) in deployments, SQLite (aiosqlite) for tests and
quick local runs.
"""

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from foodie.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def create_engine(url: str = settings.database_url, pooled: bool = True) -> AsyncEngine:
    """
    Build an async engine for the given URL.

    SQLite and one-shot engines (Celery tasks, which run each job in a fresh
    event loop) use NullPool so no connection outlives its loop.
    """
    if url.startswith("sqlite") or not pooled:
        return create_async_engine(url, echo=settings.database_echo, poolclass=NullPool)

    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


engine = create_engine()

async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    # routes serialize ORM objects after committing
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session for Depends(get_db)."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db() -> None:
    """Create missing tables; runs in the app lifespan."""
    # Register the mapped classes on Base.metadata
    import foodie.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_db() -> None:
    """Drop every table (test and reset helper)."""
    import foodie.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
