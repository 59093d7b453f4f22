"""
Database engine and session management.

One async engine per process; request handlers get a session through
the get_session dependency, background jobs through session_scope().
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from papertrade.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)

async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db() -> None:
    """Create tables for every registered SQLModel. Called at startup."""
    # Register table models on the metadata before create_all
    import papertrade.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ready")


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request-scoped session."""
    async with async_session_maker() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for work outside a request (price feed listeners)."""
    async with async_session_maker() as session:
        yield session


async def close_db() -> None:
    """Dispose pooled connections. Called during app lifespan shutdown."""
    await engine.dispose()
