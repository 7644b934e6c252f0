from typing import Optional

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from .config import settings

_engine: Optional[AsyncEngine] = None


def get_engine() -> AsyncEngine:
    """Create the async engine on first use and reuse it afterwards."""
    global _engine
    if _engine is None:
        options = {"echo": settings.DB_ECHO, "future": True}
        if settings.DATABASE_URL.startswith("sqlite"):
            # aiosqlite connections are bound to the loop that opened them
            options["poolclass"] = NullPool
        _engine = create_async_engine(settings.DATABASE_URL, **options)
    return _engine


async def init_db():
    # Import models so they are registered with SQLModel metadata
    from leadcrm import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db():
    async with get_engine().begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


def get_sessionmaker() -> sessionmaker:
    return sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncSession:
    async_session = get_sessionmaker()
    async with async_session() as session:
        yield session
