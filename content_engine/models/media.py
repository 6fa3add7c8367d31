"""
MediaAsset model for the Content Engine.

Represents one produced (or in-progress) video and its render status.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
import uuid

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from content_engine.core.database import Base


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


class AssetStatus(str, Enum):
    """Render status of a media asset."""

    PROCESSING = "processing"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not AssetStatus.PROCESSING


class MediaAsset(Base):
    """
    MediaAsset model representing a rendered video artifact.

    Created in "processing" state right before the render job is dispatched
    and moved to "ready" or "failed" exactly once by the completion poller
    (or by the pipeline when dispatch fails).
    """

    __tablename__ = "media_assets"

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

    # Provider and type
    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Producing renderer, e.g. remotion"
    )
    type: Mapped[str] = mapped_column(
        String(10),
        default="video",
        nullable=False,
        doc="Media type (always video for the render pipeline)"
    )
    prompt: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Originating prompt/title"
    )

    # Processing status
    status: Mapped[str] = mapped_column(
        String(20),
        default=AssetStatus.PROCESSING.value,
        nullable=False,
        index=True,
        doc="Status: processing, ready, failed"
    )
    result_url: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        doc="URL of the rendered video when ready"
    )
    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Error message if rendering failed"
    )

    # "metadata" is reserved on declarative classes
    asset_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        doc="fps, width, height, duration_in_frames, scene_count, scene_spec_id, ..."
    )
    scene_spec_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        index=True,
        doc="Reverse lookup to the originating SceneSpec"
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
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime,
        nullable=True,
        doc="When rendering completed successfully"
    )

    def __repr__(self) -> str:
        return f"<MediaAsset(id={self.id!r}, provider={self.provider!r}, status={self.status!r})>"
