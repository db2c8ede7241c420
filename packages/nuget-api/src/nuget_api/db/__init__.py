# SPDX-License-Identifier: MIT
"""Database module for the blob storage backend."""

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .models import Base, Blob

if TYPE_CHECKING:
    from ..config import DatabaseConfig

__all__ = [
    "Base",
    "Blob",
    "init_db",
]


async def init_db(config: "DatabaseConfig") -> AsyncEngine:
    """Create the database engine and make sure tables exist.

    Args:
        config: Database configuration

    Returns:
        Async engine bound to the configured database
    """
    # Convert sync URL to async if needed
    url = config.url
    if url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///")
    elif url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://")

    if "sqlite" in url:
        engine = create_async_engine(url, echo=config.echo)
    else:
        engine = create_async_engine(
            url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
        )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return engine
