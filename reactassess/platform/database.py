from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import settings


class Base(DeclarativeBase):
    pass


def _async_database_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine_for(url: str | None = None) -> AsyncEngine:
    """Build an async engine for the given URL (defaults to settings.DATABASE_URL)."""
    resolved = _async_database_url(url or settings.DATABASE_URL)
    engine_kw: dict = {}
    if "sqlite" in resolved:
        # Concurrent aggregator fetches open several connections to the same file.
        engine_kw = {"connect_args": {"timeout": 30}}
    else:
        engine_kw = {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}
    return create_async_engine(resolved, **engine_kw)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    # Import models so their tables register on Base.metadata.
    from .. import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
