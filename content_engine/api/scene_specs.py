"""
SceneSpec API endpoints for the Content Engine.

Provides endpoints for creating, listing, approving and rendering scene
specifications. All endpoints require authentication and verify ownership.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.api.deps import get_current_user_id, get_db, get_render_pipeline
from content_engine.models.scene_spec import SceneSpec, SpecStatus
from content_engine.schemas.render import RenderAcceptedResponse, RenderErrorResponse
from content_engine.schemas.scene_spec import (
    SceneSpecCreate,
    SceneSpecListItem,
    SceneSpecListResponse,
    SceneSpecResponse,
)
from content_engine.services.pipeline import RenderPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


# Pipeline error codes -> HTTP status
RENDER_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_spec": status.HTTP_400_BAD_REQUEST,
    "duration_out_of_range": status.HTTP_400_BAD_REQUEST,
    "invalid_status": status.HTTP_409_CONFLICT,
    "configuration_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "generation_failed": status.HTTP_502_BAD_GATEWAY,
    "code_validation_failed": status.HTTP_502_BAD_GATEWAY,
    "dispatch_failed": status.HTTP_502_BAD_GATEWAY,
    "render_worker_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
}


# =============================================================================
# Helper Functions
# =============================================================================


async def get_spec_or_404(
    spec_id: str,
    db: AsyncSession,
    user_id: str,
) -> SceneSpec:
    """
    Get a SceneSpec by ID, verifying ownership.

    Raises:
        HTTPException 404: If the spec is not found or not owned by the user
    """
    result = await db.execute(select(SceneSpec).where(SceneSpec.id == spec_id))
    spec = result.scalar_one_or_none()

    if spec is None or spec.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "not_found",
                "message": "Scene spec not found",
                "resource_type": "scene_spec",
                "resource_id": spec_id,
            },
        )

    return spec


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "",
    response_model=SceneSpecResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create scene spec",
    description="Create a new scene specification in draft status.",
)
async def create_scene_spec(
    data: SceneSpecCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SceneSpecResponse:
    spec = SceneSpec(
        user_id=user_id,
        title=data.title,
        description=data.description,
        tags=data.tags,
        target_duration=data.target_duration,
        scenes=[scene.model_dump() for scene in data.scenes],
        status=SpecStatus.DRAFT.value,
    )

    db.add(spec)
    await db.flush()
    await db.refresh(spec)

    logger.info(f"Created SceneSpec {spec.id} with {len(data.scenes)} scenes")
    return SceneSpecResponse.model_validate(spec)


@router.get(
    "",
    response_model=SceneSpecListResponse,
    summary="List scene specs",
    description="Get all scene specifications of the current user.",
)
async def list_scene_specs(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SceneSpecListResponse:
    query = (
        select(SceneSpec)
        .where(SceneSpec.user_id == user_id)
        .order_by(SceneSpec.created_at.desc())
    )
    result = await db.execute(query)
    items = [SceneSpecListItem.model_validate(spec) for spec in result.scalars().all()]

    return SceneSpecListResponse(scene_specs=items, total=len(items))


@router.get(
    "/{spec_id}",
    response_model=SceneSpecResponse,
    summary="Get scene spec",
    description="Get a scene specification, including its render status.",
)
async def get_scene_spec(
    spec_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SceneSpecResponse:
    spec = await get_spec_or_404(spec_id, db, user_id)
    return SceneSpecResponse.model_validate(spec)


@router.post(
    "/{spec_id}/approve",
    response_model=SceneSpecResponse,
    summary="Approve scene spec",
    description="Move a draft scene specification to approved.",
)
async def approve_scene_spec(
    spec_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> SceneSpecResponse:
    """
    Approve a draft scene spec.

    Only drafts can be approved; any other status returns 409.
    """
    spec = await get_spec_or_404(spec_id, db, user_id)

    if spec.spec_status is not SpecStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "invalid_status",
                "message": f"Only draft scene specs can be approved (status is '{spec.status}')",
            },
        )

    spec.status = SpecStatus.APPROVED.value
    await db.flush()
    await db.refresh(spec)

    return SceneSpecResponse.model_validate(spec)


@router.post(
    "/{spec_id}/render",
    response_model=RenderAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Render scene spec",
    description=(
        "Prepare assets, generate and validate the composition, and dispatch it to the "
        "render worker. Returns immediately; poll the scene spec or media asset for the result."
    ),
    responses={
        400: {"model": RenderErrorResponse, "description": "Invalid scene spec"},
        404: {"model": RenderErrorResponse, "description": "Scene spec not found"},
        409: {"model": RenderErrorResponse, "description": "Scene spec cannot be rendered"},
        500: {"model": RenderErrorResponse, "description": "Pipeline not configured"},
        502: {"model": RenderErrorResponse, "description": "Generation or dispatch failed"},
        503: {"model": RenderErrorResponse, "description": "Render worker unavailable"},
    },
)
async def render_scene_spec(
    spec_id: str,
    user_id: str = Depends(get_current_user_id),
    pipeline: RenderPipeline = Depends(get_render_pipeline),
) -> RenderAcceptedResponse:
    result = await pipeline.render(spec_id, user_id)

    if not result.success:
        error_code = result.error_code or "render_failed"
        detail = {"error": error_code, "message": result.error or "Render failed"}
        if result.warnings:
            detail["warnings"] = result.warnings
        raise HTTPException(
            status_code=RENDER_ERROR_STATUS.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=detail,
        )

    return RenderAcceptedResponse(
        scene_spec_id=spec_id,
        media_asset_id=result.media_asset_id,
        job_id=result.job_id,
        warnings=result.warnings,
    )
