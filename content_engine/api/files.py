"""
Serves generated files (synthesized narration) to the render worker.

File names are unguessable (timestamp + content hash) and the worker fetches
them without user credentials, so these routes are unauthenticated.
"""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from content_engine.core.storage import resolve_stored_path

router = APIRouter()

AUDIO_MEDIA_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
}


@router.get(
    "/audio/{filename}",
    summary="Get generated audio",
    description="Download a synthesized narration file.",
)
async def get_audio_file(filename: str) -> FileResponse:
    try:
        path = resolve_stored_path("audio", filename)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_file", "message": str(e)},
        )

    if not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": "Audio file not found"},
        )

    return FileResponse(
        path=str(path),
        media_type=AUDIO_MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream"),
        filename=path.name,
    )
