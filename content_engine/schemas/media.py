"""
Pydantic schemas for MediaAsset endpoints.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaAssetResponse(BaseModel):
    """Status and result of a produced media asset."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    provider: str
    type: str
    prompt: str
    status: Literal["processing", "ready", "failed"]
    result_url: Optional[str] = Field(None, description="Video URL once ready")
    error_message: Optional[str] = Field(None, description="Error message if failed")
    metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias="asset_metadata",
        description="Render settings and diagnostics",
    )
    scene_spec_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
