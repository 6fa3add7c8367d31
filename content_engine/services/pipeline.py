"""
Render pipeline orchestration.

Runs AssetPreparer -> CodeSynthesizer -> code validation -> render dispatch
in strict sequence for one SceneSpec, and hands the dispatched job to the
CompletionPoller. Records are only created once dispatch is about to be
attempted; callers get an immediate accepted/failed result and observe the
final outcome on the SceneSpec and MediaAsset records.

Usage:
    pipeline = get_render_pipeline()
    result = await pipeline.render(spec_id, user_id)
    if result.success:
        print(result.media_asset_id, result.warnings)
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from content_engine.core.config import RenderPipelineConfig, Settings, get_settings
from content_engine.core.database import AsyncSessionLocal
from content_engine.models.scene_spec import RENDERABLE_STATUSES
from content_engine.schemas.scene_spec import SceneDescriptor
from content_engine.services.assets import AssetPreparer
from content_engine.services.code_validator import validate_composition_code
from content_engine.services.codegen import CodeSynthesizer, OpenAICodeModel, OutputSettings
from content_engine.services.poller import CompletionPoller
from content_engine.services.providers import ElevenLabsSpeechProvider, PexelsFootageProvider
from content_engine.services.render_worker import OutputConfig, RenderJob, RenderWorkerClient
from content_engine.services.store import RenderStore, TerminalOutcome

logger = logging.getLogger(__name__)


RENDERER_NAME = "remotion"


@dataclass
class PipelineResult:
    """Outcome of one render invocation. ``error_code`` is set on failure."""

    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    media_asset_id: Optional[str] = None
    job_id: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error_code: str, error: str, warnings: Optional[List[str]] = None) -> "PipelineResult":
        return cls(success=False, error=error, error_code=error_code, warnings=list(warnings or []))


class RenderPipeline:
    """Entry point that turns an approved (or draft) SceneSpec into a render job."""

    def __init__(
        self,
        config: RenderPipelineConfig,
        store: RenderStore,
        asset_preparer: AssetPreparer,
        synthesizer: CodeSynthesizer,
        worker: RenderWorkerClient,
        poller: CompletionPoller,
    ) -> None:
        self._config = config
        self._store = store
        self._asset_preparer = asset_preparer
        self._synthesizer = synthesizer
        self._worker = worker
        self._poller = poller

    @property
    def config(self) -> RenderPipelineConfig:
        return self._config

    @property
    def worker(self) -> RenderWorkerClient:
        return self._worker

    @property
    def poller(self) -> CompletionPoller:
        return self._poller

    async def render(self, spec_id: str, user_id: str) -> PipelineResult:
        config = self._config

        spec = await self._store.get_scene_spec(spec_id)
        if spec is None or spec.user_id != user_id:
            return PipelineResult.failure("not_found", "Scene spec not found")

        if spec.spec_status not in RENDERABLE_STATUSES:
            return PipelineResult.failure(
                "invalid_status",
                f"Scene spec cannot be rendered from status '{spec.status}'",
            )

        if not spec.scenes:
            return PipelineResult.failure("invalid_spec", "Scene spec has no scenes")

        try:
            descriptors = [SceneDescriptor.model_validate(scene) for scene in spec.scenes]
        except ValidationError as e:
            return PipelineResult.failure("invalid_spec", f"Scene spec has invalid scenes: {e}")

        if not config.min_duration_sec <= spec.target_duration <= config.max_duration_sec:
            return PipelineResult.failure(
                "duration_out_of_range",
                f"Target duration must be between {config.min_duration_sec} and "
                f"{config.max_duration_sec} seconds (got {spec.target_duration})",
            )

        logger.info(f"Rendering SceneSpec {spec_id} ({len(descriptors)} scenes, {spec.target_duration}s)")

        # Stage 1: assets (degrades, never fails)
        prepared = await self._asset_preparer.prepare(descriptors)
        warnings = prepared.warnings

        # Stage 2: code generation
        output = OutputSettings(fps=config.fps, width=config.width, height=config.height)
        synthesis = await self._synthesizer.synthesize(
            title=spec.title,
            description=spec.description or "",
            target_duration=spec.target_duration,
            output=output,
            scenes=prepared.scenes,
        )
        if not synthesis.success:
            return PipelineResult.failure(
                synthesis.error_code or "generation_failed",
                synthesis.error or "Code generation failed",
                warnings,
            )

        # Stage 3: safety gate
        validation = validate_composition_code(synthesis.text or "")
        if not validation.valid:
            logger.warning(f"Generated code for SceneSpec {spec_id} rejected: {validation.reason}")
            return PipelineResult.failure(
                "code_validation_failed",
                f"Generated code failed validation: {validation.reason}",
                warnings,
            )

        # Stage 4: records, then dispatch
        duration_in_frames = spec.target_duration * config.fps
        job = RenderJob(
            job_id=f"render-{uuid.uuid4()}",
            scene_spec_id=spec_id,
            code=validation.code,
            output_config=OutputConfig(
                fps=config.fps,
                width=config.width,
                height=config.height,
                duration_in_frames=duration_in_frames,
            ),
        )

        asset = await self._store.begin_rendering(
            spec_id=spec_id,
            user_id=user_id,
            prompt=f"Content Engine: {spec.title}",
            provider=RENDERER_NAME,
            metadata={
                "fps": config.fps,
                "width": config.width,
                "height": config.height,
                "target_duration": spec.target_duration,
                "duration_in_frames": duration_in_frames,
                "scene_count": len(prepared.scenes),
                "scene_spec_id": spec_id,
                "job_id": job.job_id,
                "asset_warnings": list(warnings),
            },
        )
        if asset is None:
            return PipelineResult.failure(
                "invalid_status", "Scene spec is already being rendered", warnings
            )

        try:
            dispatch = await self._worker.dispatch(job)
            if not dispatch.success:
                error = dispatch.error or "Failed to dispatch render job"
                await self._store.mark_terminal(spec_id, asset.id, TerminalOutcome.failed(error))
                return PipelineResult.failure(
                    "render_worker_unavailable" if dispatch.worker_unavailable else "dispatch_failed",
                    error,
                    warnings,
                )

            self._poller.start(job.job_id, spec_id, asset.id)
        except Exception as e:
            logger.exception(f"Render pipeline error for SceneSpec {spec_id}")
            await self._store.mark_terminal(
                spec_id, asset.id, TerminalOutcome.failed(f"Render pipeline error: {e}")
            )
            raise

        job.status = "rendering"
        logger.info(
            f"SceneSpec {spec_id} accepted for rendering as job {job.job_id}; "
            f"polling for at most {config.max_wait_seconds:.0f}s"
        )
        return PipelineResult(
            success=True,
            media_asset_id=asset.id,
            job_id=job.job_id,
            warnings=warnings,
        )


def build_render_pipeline(settings: Settings) -> RenderPipeline:
    """Wire a RenderPipeline from application settings."""
    config = settings.pipeline_config()
    store = RenderStore(AsyncSessionLocal)

    worker = RenderWorkerClient(
        config.worker_base_url,
        dispatch_timeout=settings.render_dispatch_timeout,
        status_timeout=settings.render_status_timeout,
    )
    poller = CompletionPoller(
        worker,
        store,
        poll_interval_ms=config.poll_interval_ms,
        max_attempts=config.max_poll_attempts,
    )

    preparer = AssetPreparer(
        speech=ElevenLabsSpeechProvider(
            api_key=settings.elevenlabs_api_key,
            voice_id=settings.elevenlabs_voice_id,
            base_url=settings.elevenlabs_base_url,
        ),
        footage=PexelsFootageProvider(
            api_key=settings.pexels_api_key,
            base_url=settings.pexels_base_url,
            orientation=OutputSettings(config.fps, config.width, config.height).orientation,
        ),
        footage_per_scene=settings.footage_per_scene,
        fallback_video_urls=settings.fallback_video_urls_list,
    )

    model = None
    if config.model_credential:
        model = OpenAICodeModel(
            api_key=config.model_credential,
            model=config.model_name,
            base_url=config.model_endpoint,
            timeout=settings.codegen_timeout,
            max_tokens=settings.codegen_max_tokens,
        )

    return RenderPipeline(
        config=config,
        store=store,
        asset_preparer=preparer,
        synthesizer=CodeSynthesizer(model),
        worker=worker,
        poller=poller,
    )


_pipeline: Optional[RenderPipeline] = None


def get_render_pipeline() -> RenderPipeline:
    """Return the process-wide RenderPipeline, building it on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = build_render_pipeline(get_settings())
    return _pipeline


async def shutdown_render_pipeline() -> None:
    """Cancel in-flight polling; affected records are marked failed."""
    global _pipeline
    if _pipeline is not None:
        await _pipeline.poller.shutdown()
        _pipeline = None
