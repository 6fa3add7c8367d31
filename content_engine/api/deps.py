"""
Common dependencies for Content Engine API endpoints.

Provides reusable FastAPI dependencies for database sessions,
authentication and the render pipeline.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.core.database import get_async_session
from content_engine.core.security import get_current_user_id
from content_engine.services.pipeline import RenderPipeline
from content_engine.services.pipeline import get_render_pipeline as _get_render_pipeline


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Provides an async database session for route handlers.
    The session is automatically committed on success or
    rolled back on exception.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async for session in get_async_session():
        yield session


def get_render_pipeline() -> RenderPipeline:
    """Render pipeline dependency; overridden in tests."""
    return _get_render_pipeline()


__all__ = [
    "get_db",
    "get_current_user_id",
    "get_render_pipeline",
]
