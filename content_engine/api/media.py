"""
MediaAsset API endpoints for the Content Engine.

Media assets are produced by the render pipeline; clients poll them for the
final video URL or failure reason.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from content_engine.api.deps import get_current_user_id, get_db
from content_engine.models.media import MediaAsset
from content_engine.schemas.media import MediaAssetResponse

router = APIRouter()


async def get_media_or_404(
    media_id: str,
    db: AsyncSession,
    user_id: str,
) -> MediaAsset:
    """
    Get a media asset by ID, verifying ownership.

    Raises:
        HTTPException 404: If the asset is not found or not owned by the user
    """
    result = await db.execute(select(MediaAsset).where(MediaAsset.id == media_id))
    media = result.scalar_one_or_none()

    if media is None or media.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "not_found",
                "message": "Media asset not found",
                "resource_type": "media_asset",
                "resource_id": media_id,
            },
        )

    return media


@router.get(
    "/{media_id}",
    response_model=MediaAssetResponse,
    summary="Get media asset",
    description="Get a media asset's render status and result URL.",
)
async def get_media(
    media_id: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> MediaAssetResponse:
    media = await get_media_or_404(media_id, db, user_id)
    return MediaAssetResponse.model_validate(media)
