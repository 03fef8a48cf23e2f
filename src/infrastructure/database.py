"""
Async SQLAlchemy engine and session factory.

PostgreSQL via ``asyncpg`` in production.  The pricing tables are small,
read-mostly reference data, so a modest pool is enough.  A SQLite URL
(``sqlite+aiosqlite://``) is accepted for local runs; it gets no pool
sizing because SQLite's pool classes take none.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from src.config import settings


def engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"echo": False}
    return {"echo": False, "pool_size": 10, "max_overflow": 5, "pool_pre_ping": True}


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def dispose_engine() -> None:
    """Close pooled connections; called on shutdown."""
    await engine.dispose()


class Base(DeclarativeBase):
    """Shared declarative base for all pricing reference-data models."""
