"""
Persistence of the SceneSpec / MediaAsset pair across a render.

Every write runs in its own transaction and touches both records, so no
reader ever sees one record terminal while the other is still in flight.
Writes are conditional on the current status; a record that has already
reached a terminal state is never overwritten.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_engine.models.media import AssetStatus, MediaAsset
from content_engine.models.scene_spec import RENDERABLE_STATUSES, SceneSpec, SpecStatus

logger = logging.getLogger(__name__)


_NON_TERMINAL_SPEC = [s.value for s in SpecStatus if not s.is_terminal]


@dataclass(frozen=True)
class TerminalOutcome:
    """Final result of a render, applied to both records at once."""

    status: AssetStatus
    result_url: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ready(cls, result_url: str) -> "TerminalOutcome":
        if not result_url:
            raise ValueError("A ready outcome requires a result URL")
        return cls(status=AssetStatus.READY, result_url=result_url)

    @classmethod
    def failed(cls, error: str) -> "TerminalOutcome":
        return cls(status=AssetStatus.FAILED, error=error or "Render failed")


class RenderStore:
    """Transactional access to render state, independent of request sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_scene_spec(self, spec_id: str) -> Optional[SceneSpec]:
        async with self._session_factory() as session:
            return await session.get(SceneSpec, spec_id)

    async def begin_rendering(
        self,
        spec_id: str,
        user_id: str,
        prompt: str,
        metadata: Dict[str, Any],
        provider: str = "remotion",
    ) -> Optional[MediaAsset]:
        """
        Create a processing MediaAsset and move the SceneSpec to rendering.

        Returns None, writing nothing, if the spec is no longer in a
        renderable status (e.g. another render started first).
        """
        async with self._session_factory() as session:
            try:
                asset = MediaAsset(
                    user_id=user_id,
                    provider=provider,
                    type="video",
                    prompt=prompt,
                    status=AssetStatus.PROCESSING.value,
                    asset_metadata=metadata,
                    scene_spec_id=spec_id,
                )
                session.add(asset)
                await session.flush()

                result = await session.execute(
                    update(SceneSpec)
                    .where(
                        SceneSpec.id == spec_id,
                        SceneSpec.status.in_([s.value for s in RENDERABLE_STATUSES]),
                    )
                    .values(
                        status=SpecStatus.RENDERING.value,
                        media_asset_id=asset.id,
                        error_message=None,
                    )
                )
                if result.rowcount != 1:
                    await session.rollback()
                    logger.warning(f"SceneSpec {spec_id} is no longer renderable")
                    return None

                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(f"SceneSpec {spec_id} rendering into MediaAsset {asset.id}")
        return asset

    async def mark_terminal(self, spec_id: str, asset_id: str, outcome: TerminalOutcome) -> bool:
        """
        Apply a terminal outcome to the MediaAsset and its SceneSpec.

        Both rows are written or neither is. Returns False if either record
        was already terminal (or missing), in which case nothing changes.
        """
        now = datetime.utcnow()
        ready = outcome.status is AssetStatus.READY

        asset_values: Dict[str, Any] = {"status": outcome.status.value}
        spec_values: Dict[str, Any]
        if ready:
            asset_values.update(result_url=outcome.result_url, error_message=None, completed_at=now)
            spec_values = {"status": SpecStatus.RENDERED.value, "error_message": None, "rendered_at": now}
            spec_from = [SpecStatus.RENDERING.value]
        else:
            asset_values.update(error_message=outcome.error)
            spec_values = {"status": SpecStatus.FAILED.value, "error_message": outcome.error}
            spec_from = _NON_TERMINAL_SPEC

        async with self._session_factory() as session:
            try:
                asset_result = await session.execute(
                    update(MediaAsset)
                    .where(
                        MediaAsset.id == asset_id,
                        MediaAsset.status == AssetStatus.PROCESSING.value,
                    )
                    .values(**asset_values)
                )
                spec_result = await session.execute(
                    update(SceneSpec)
                    .where(SceneSpec.id == spec_id, SceneSpec.status.in_(spec_from))
                    .values(**spec_values)
                )
                if asset_result.rowcount != 1 or spec_result.rowcount != 1:
                    await session.rollback()
                    logger.info(
                        f"Skipped terminal write for SceneSpec {spec_id} / MediaAsset {asset_id}: "
                        f"already terminal"
                    )
                    return False

                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(
            f"SceneSpec {spec_id} / MediaAsset {asset_id} marked {outcome.status.value}"
        )
        return True

