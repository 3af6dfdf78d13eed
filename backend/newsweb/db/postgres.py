"""PostgreSQL engine and sessions for the ingestion pipeline."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from newsweb.config import get_settings


@lru_cache
def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Async engine for ``database_url`` (defaults to the configured one), built once per URL."""
    return create_async_engine(database_url or get_settings().database_url, pool_pre_ping=True)


def session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine or get_engine(), class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the pipeline tables if they don't exist."""
    import newsweb.models  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session(engine: AsyncEngine | None = None) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for one ingestion run."""
    async with session_factory(engine)() as session:
        yield session
