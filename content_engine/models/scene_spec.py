"""
SceneSpec model for the Content Engine.

Stores the structured description of a video (ordered scenes with voiceover
text and visual intent) and its rendering lifecycle.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
import uuid

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from content_engine.core.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class SpecStatus(str, Enum):
    """Lifecycle of a scene specification. Only ever advances forward."""

    DRAFT = "draft"
    APPROVED = "approved"
    RENDERING = "rendering"
    RENDERED = "rendered"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SpecStatus.RENDERED, SpecStatus.FAILED)

    def can_advance_to(self, target: "SpecStatus") -> bool:
        """Return True if moving from this status to ``target`` is a forward move."""
        if self.is_terminal:
            return False
        if target.is_terminal:
            # Only a rendering spec reaches rendered; failure may happen at any
            # point before a terminal state
            return target is SpecStatus.FAILED or self is SpecStatus.RENDERING
        return _SPEC_ORDER[target] > _SPEC_ORDER[self]


_SPEC_ORDER = {
    SpecStatus.DRAFT: 0,
    SpecStatus.APPROVED: 1,
    SpecStatus.RENDERING: 2,
    SpecStatus.RENDERED: 3,
    SpecStatus.FAILED: 3,
}

# Statuses from which a render may be started
RENDERABLE_STATUSES = (SpecStatus.DRAFT, SpecStatus.APPROVED)


class SceneSpec(Base):
    """
    SceneSpec model representing one video to produce.

    Scenes are embedded as a JSON list of scene descriptors (order,
    voiceover_text, visual_intent, duration_hint, style_hints). The produced
    MediaAsset is referenced by id; the asset references back by scene_spec_id.
    """

    __tablename__ = "scene_specs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
        doc="UUID primary key"
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
        doc="Owning user id"
    )

    # Content
    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Video title"
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Free-text video description"
    )
    tags: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
        doc="Discoverability tags"
    )
    target_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Target total duration in seconds"
    )
    scenes: Mapped[List[dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        doc="Ordered scene descriptors"
    )

    # Status tracking
    status: Mapped[str] = mapped_column(
        String(20),
        default=SpecStatus.DRAFT.value,
        nullable=False,
        index=True,
        doc="Status: draft, approved, rendering, rendered, failed"
    )
    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Error message if rendering failed"
    )
    media_asset_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        doc="Produced MediaAsset, set when rendering starts"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        doc="Creation timestamp"
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=True,
        doc="Last update timestamp"
    )
    rendered_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        doc="When rendering completed successfully"
    )

    @property
    def spec_status(self) -> SpecStatus:
        return SpecStatus(self.status)

    def __repr__(self) -> str:
        return f"<SceneSpec(id={self.id!r}, title={self.title!r}, status={self.status!r})>"
