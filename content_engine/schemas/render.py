"""
Pydantic schemas for the render endpoint and the render worker contract.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Render worker contract ---


class WorkerJobStatus(BaseModel):
    """Body of the render worker's GET /status/{jobId} response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    job_id: Optional[str] = Field(None, alias="jobId")
    status: Literal["queued", "rendering", "complete", "failed"]
    result_url: Optional[str] = Field(None, alias="resultUrl")
    error: Optional[str] = None
    progress: Optional[float] = None


# --- Response Schemas ---


class RenderAcceptedResponse(BaseModel):
    """Response when a SceneSpec was accepted for rendering (202 Accepted)."""

    scene_spec_id: str = Field(..., description="Rendered SceneSpec")
    media_asset_id: str = Field(..., description="MediaAsset to poll for the result")
    job_id: str = Field(..., description="Render worker job id")
    status: Literal["rendering"] = "rendering"
    warnings: List[str] = Field(
        default_factory=list, description="Per-scene asset preparation warnings"
    )


class RenderErrorResponse(BaseModel):
    """Error body returned when the pipeline rejects or fails a render."""

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable description")
