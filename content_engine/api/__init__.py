"""
Content Engine API routes package.

Contains all API endpoint routers for the application.
"""

from fastapi import APIRouter

from .files import router as files_router
from .media import router as media_router
from .scene_specs import router as scene_specs_router

# Main API router that includes all sub-routers
api_router = APIRouter()

api_router.include_router(scene_specs_router, prefix="/scene-specs", tags=["scene-specs"])

api_router.include_router(media_router, prefix="/media", tags=["media"])

# Generated files fetched by the render worker
api_router.include_router(files_router, prefix="/files", tags=["files"])

__all__ = [
    "api_router",
    "files_router",
    "media_router",
    "scene_specs_router",
]
