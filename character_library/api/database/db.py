"""PostgreSQL connection management.

SQLAlchemy async creates the schema; the repositories talk to Postgres through
an asyncpg pool with raw SQL.
"""

from typing import Optional

import asyncpg
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..config import DATABASE_URL


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


# Create async engine (only if DATABASE_URL is configured)
engine: Optional[AsyncEngine] = None

if DATABASE_URL:
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,  # Set to True for SQL debugging
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
    )


def _check_configured():
    """Raise an error if the database is not configured."""
    if engine is None:
        raise RuntimeError(
            "Database not configured. Set DATABASE_URL environment variable "
            "to a PostgreSQL connection string."
        )


def asyncpg_dsn(url: str = DATABASE_URL) -> str:
    """Convert a SQLAlchemy-style URL to asyncpg format."""
    return url.replace("+asyncpg", "")


async def init_db() -> None:
    """Initialize database - create all tables."""
    _check_configured()
    from . import models  # noqa: F401  (register tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def create_pool(min_size: int = 1, max_size: int = 5) -> asyncpg.Pool:
    """Create the asyncpg pool used by the job store and character repository."""
    _check_configured()
    return await asyncpg.create_pool(asyncpg_dsn(), min_size=min_size, max_size=max_size)
