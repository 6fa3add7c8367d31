"""
Business logic for the Content Engine render pipeline.
"""

from .assets import AssetPreparationResult, AssetPreparer, PreparedScene
from .code_validator import CodeValidationResult, clean_generated_code, validate_composition_code
from .codegen import CodeModelError, CodeSynthesizer, OpenAICodeModel, OutputSettings, SynthesisResult
from .pipeline import (
    PipelineResult,
    RenderPipeline,
    build_render_pipeline,
    get_render_pipeline,
    shutdown_render_pipeline,
)
from .poller import CompletionPoller
from .render_worker import DispatchResult, OutputConfig, RenderJob, RenderWorkerClient, RenderWorkerError
from .store import RenderStore, TerminalOutcome

__all__ = [
    # Assets
    "AssetPreparationResult",
    "AssetPreparer",
    "PreparedScene",
    # Code generation and validation
    "CodeModelError",
    "CodeSynthesizer",
    "CodeValidationResult",
    "OpenAICodeModel",
    "OutputSettings",
    "SynthesisResult",
    "clean_generated_code",
    "validate_composition_code",
    # Render worker
    "DispatchResult",
    "OutputConfig",
    "RenderJob",
    "RenderWorkerClient",
    "RenderWorkerError",
    # Orchestration
    "CompletionPoller",
    "PipelineResult",
    "RenderPipeline",
    "RenderStore",
    "TerminalOutcome",
    "build_render_pipeline",
    "get_render_pipeline",
    "shutdown_render_pipeline",
]
