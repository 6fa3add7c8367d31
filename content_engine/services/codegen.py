"""
Remotion code generation for the render pipeline.

Builds a deterministic prompt from the SceneSpec, the output settings and the
prepared scene assets, then asks a generative model (any OpenAI-compatible
chat completions endpoint) for a single-file Remotion composition. The text
is returned unvalidated; see code_validator for the safety gate.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import httpx
from openai import APIError, APITimeoutError, AsyncOpenAI

from content_engine.services.assets import PreparedScene

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are a Remotion video developer. You generate React components for Remotion video compositions.

CRITICAL RULES:
1. Output ONLY valid TypeScript/React code - no markdown, no explanations
2. Use only Remotion's built-in components and hooks
3. All imports must be from 'remotion' package only
4. The code must be a single file with exactly one default export
5. All assets (video, audio, images) are provided as external URLs
6. Never use local file paths - only https:// URLs
7. The composition must match the exact duration specified
8. Never use eval, Function, .constructor, window[...]/self[...] lookups, require, dynamic import, process, or any Node.js module

ALLOWED REMOTION IMPORTS:
- AbsoluteFill, Sequence, useCurrentFrame, useVideoConfig
- spring, interpolate, Easing
- Audio, Video, Img, OffthreadVideo

CODE STRUCTURE:
import { AbsoluteFill, Sequence, useCurrentFrame, useVideoConfig, Audio, OffthreadVideo, interpolate } from 'remotion';

const Scene1 = () => { ... };

const MyComposition = () => {
  return (
    <AbsoluteFill style={{ backgroundColor: '#000' }}>
      <Sequence from={0} durationInFrames={...}>
        <Scene1 />
      </Sequence>
    </AbsoluteFill>
  );
};

export default MyComposition;

STYLE GUIDELINES:
- Use dark backgrounds (#000, #111, #1a1a1a) for a cinematic feel
- Text should be white or light colored with good contrast
- Use subtle animations (fade in, scale, slide)
- Center important text elements

OUTPUT FORMAT:
Return ONLY the complete TypeScript code. No markdown code blocks, no explanations."""


class CodeModelError(Exception):
    """Raised by a code model when a completion cannot be obtained."""


class CodeModel(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> str: ...


class OpenAICodeModel:
    """Code model backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        max_tokens: int = 8000,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except APITimeoutError as e:
            raise CodeModelError(f"Code generation timed out: {e}") from e
        except APIError as e:
            raise CodeModelError(f"Code model API error: {e}") from e

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise CodeModelError("Unexpected code model response format")
        return content


@dataclass(frozen=True)
class OutputSettings:
    fps: int
    width: int
    height: int

    @property
    def orientation(self) -> str:
        return "landscape" if self.width > self.height else "portrait"


@dataclass(frozen=True)
class SceneTiming:
    """Frame-accurate placement of one scene. ``end_frame`` is exclusive."""

    order: int
    duration_seconds: float
    start_frame: int
    duration_frames: int

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.duration_frames


def compute_scene_timings(
    scenes: Sequence[PreparedScene],
    target_duration: int,
    fps: int,
) -> List[SceneTiming]:
    """
    Lay scenes out back to back starting at frame 0.

    A scene lasts its duration hint, or an even share of the target duration
    when it has none.
    """
    even_share = target_duration / len(scenes) if scenes else 0
    timings: List[SceneTiming] = []
    current_frame = 0
    for scene in scenes:
        seconds = scene.duration_hint or even_share
        frames = max(1, round(seconds * fps))
        timings.append(
            SceneTiming(
                order=scene.order,
                duration_seconds=seconds,
                start_frame=current_frame,
                duration_frames=frames,
            )
        )
        current_frame += frames
    return timings


def build_user_prompt(
    title: str,
    description: str,
    target_duration: int,
    output: OutputSettings,
    scenes: Sequence[PreparedScene],
) -> str:
    """Build the code generation request for one SceneSpec."""
    total_frames = target_duration * output.fps
    timings = compute_scene_timings(scenes, target_duration, output.fps)

    scene_blocks = []
    for scene, timing in zip(scenes, timings):
        block = (
            f"SCENE {scene.order} (frames {timing.start_frame} to {timing.end_frame - 1}, "
            f"{timing.duration_frames} frames, ~{timing.duration_seconds:g}s):\n"
            f'- Visual Intent: "{scene.visual_intent}"\n'
            f'- Voiceover Text: "{scene.voiceover_text}"\n'
            f"- Background Video URL: {scene.video_urls[0] if scene.video_urls else 'none'}\n"
            f"- Scene Audio URL: {scene.audio_url or 'none'}"
        )
        if scene.style_hints:
            hints = ", ".join(f"{key}={value}" for key, value in scene.style_hints.items())
            block += f"\n- Style Hints: {hints}"
        scene_blocks.append(block)

    scenes_description = "\n\n".join(scene_blocks)

    return f"""Generate a Remotion composition for the following video:

VIDEO METADATA:
- Title: "{title}"
- Description: "{description}"
- Total Duration: {target_duration} seconds
- Total Frames: {total_frames} frames
- FPS: {output.fps}
- Resolution: {output.width}x{output.height} ({output.orientation})

SCENES:
{scenes_description}

REQUIREMENTS:
1. Create a component for each scene that displays:
   - The background video (OffthreadVideo with the provided URL, objectFit 'cover'); a dark background when the URL is none
   - The voiceover text as a caption at the bottom, white text on a semi-transparent dark background, fading in and out
2. Include each scene's audio with the Audio component inside that scene's Sequence (skip scenes whose audio URL is none)
3. Use Sequence components with the exact frame ranges above; each scene starts exactly where the previous one ends
4. The root element must be AbsoluteFill
5. Total composition must be exactly {total_frames} frames

Generate the complete, runnable Remotion composition code now:"""


@dataclass
class SynthesisResult:
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class CodeSynthesizer:
    """Turns prepared scenes into raw generated Remotion code."""

    def __init__(self, model: Optional[CodeModel]) -> None:
        # None when no model credential is configured
        self._model = model

    async def synthesize(
        self,
        title: str,
        description: str,
        target_duration: int,
        output: OutputSettings,
        scenes: Sequence[PreparedScene],
    ) -> SynthesisResult:
        if self._model is None:
            logger.error("Code model credentials are not configured")
            return SynthesisResult(
                success=False,
                error="Code generation is not configured. Please set CODEGEN_API_KEY.",
                error_code="configuration_error",
            )

        user_prompt = build_user_prompt(title, description, target_duration, output, scenes)

        try:
            text = await self._model.complete(SYSTEM_PROMPT, user_prompt)
        except CodeModelError as e:
            logger.error(f"Code generation failed: {e}")
            return SynthesisResult(success=False, error=str(e), error_code="generation_failed")

        if not isinstance(text, str) or not text.strip():
            return SynthesisResult(
                success=False,
                error="Code model returned an empty response",
                error_code="generation_failed",
            )

        logger.info(f"Generated composition code, length: {len(text)}")
        return SynthesisResult(success=True, text=text)
