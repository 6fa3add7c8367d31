"""
Pydantic schemas for the Content Engine API.
"""

from .media import MediaAssetResponse
from .render import RenderAcceptedResponse, RenderErrorResponse, WorkerJobStatus
from .scene_spec import (
    SceneDescriptor,
    SceneSpecCreate,
    SceneSpecListItem,
    SceneSpecListResponse,
    SceneSpecResponse,
)

__all__ = [
    "MediaAssetResponse",
    "RenderAcceptedResponse",
    "RenderErrorResponse",
    "WorkerJobStatus",
    "SceneDescriptor",
    "SceneSpecCreate",
    "SceneSpecListItem",
    "SceneSpecListResponse",
    "SceneSpecResponse",
]
