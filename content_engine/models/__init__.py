"""
SQLAlchemy models for the Content Engine.

This module exports all database models for convenient importing:

    from content_engine.models import SceneSpec, MediaAsset

All models use UUID strings as primary keys for SQLite compatibility.
"""

from .media import AssetStatus, MediaAsset
from .scene_spec import RENDERABLE_STATUSES, SceneSpec, SpecStatus

__all__ = [
    "AssetStatus",
    "MediaAsset",
    "RENDERABLE_STATUSES",
    "SceneSpec",
    "SpecStatus",
]
