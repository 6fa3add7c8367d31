"""
Persistence setup for scene specifications and media assets.

One async engine per process. Request handlers get sessions through
``get_async_session``; the render pipeline opens its own short transactions
through ``AsyncSessionLocal`` (see services.store), so polling never shares a
request's session.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

async_engine = create_async_engine(_settings.database_url, echo=_settings.sql_echo)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for scene_specs and media_assets."""


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_all_tables() -> None:
    """Create scene_specs and media_assets if they do not exist yet."""
    # Registers the mapped classes on Base.metadata
    from content_engine import models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}")


async def check_database() -> Dict[str, Any]:
    """Run a trivial query and report the result in health-check form."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy"}
