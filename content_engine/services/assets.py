"""
Asset preparation for the render pipeline.

Fetches narration audio and stock footage for every scene. The two provider
batches run concurrently; a failure for one scene (or a whole batch) degrades
that scene's fields to empty values and adds a warning instead of failing.

Usage:
    preparer = AssetPreparer(speech_provider, footage_provider)
    result = await preparer.prepare(scene_descriptors)
    for scene in result.scenes:
        print(scene.order, scene.audio_url, scene.video_urls)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from content_engine.schemas.scene_spec import SceneDescriptor
from content_engine.services.providers.footage import FootageBatchResult, FootageProvider
from content_engine.services.providers.speech import SpeechBatchResult, SpeechProvider

logger = logging.getLogger(__name__)


@dataclass
class PreparedScene:
    """A scene descriptor joined with its prepared media."""

    order: int
    voiceover_text: str
    visual_intent: str
    duration_hint: Optional[float] = None
    style_hints: Optional[Dict[str, Any]] = None
    audio_url: str = ""
    video_urls: List[str] = field(default_factory=list)


@dataclass
class AssetPreparationResult:
    scenes: List[PreparedScene]
    warnings: List[str] = field(default_factory=list)


class AssetPreparer:
    """
    Prepares per-scene speech audio and stock footage.

    Always returns exactly one PreparedScene per input descriptor, in scene
    order, and never raises for provider failures.
    """

    def __init__(
        self,
        speech: SpeechProvider,
        footage: FootageProvider,
        footage_per_scene: int = 1,
        fallback_video_urls: Optional[Sequence[str]] = None,
    ) -> None:
        self._speech = speech
        self._footage = footage
        self._footage_per_scene = footage_per_scene
        self._fallback_video_urls = list(fallback_video_urls or [])

    async def prepare(self, descriptors: Sequence[SceneDescriptor]) -> AssetPreparationResult:
        ordered = sorted(descriptors, key=lambda d: d.order)
        texts = [d.voiceover_text for d in ordered]
        intents = [d.visual_intent for d in ordered]

        speech_outcome, footage_outcome = await asyncio.gather(
            self._speech.synthesize(texts),
            self._footage.search(intents, self._footage_per_scene),
            return_exceptions=True,
        )

        warnings: List[str] = []
        audio_urls = self._collect_audio(speech_outcome, len(ordered), warnings)
        video_urls = self._collect_footage(footage_outcome, len(ordered), warnings)

        scenes: List[PreparedScene] = []
        for index, descriptor in enumerate(ordered):
            audio_url = audio_urls[index]
            videos = video_urls[index]

            if not audio_url:
                warnings.append(f"Scene {descriptor.order}: narration audio unavailable")
            if not videos:
                if self._fallback_video_urls:
                    videos = list(self._fallback_video_urls[: self._footage_per_scene])
                    warnings.append(f"Scene {descriptor.order}: stock footage unavailable, using fallback footage")
                else:
                    warnings.append(f"Scene {descriptor.order}: stock footage unavailable")

            scenes.append(
                PreparedScene(
                    order=descriptor.order,
                    voiceover_text=descriptor.voiceover_text,
                    visual_intent=descriptor.visual_intent,
                    duration_hint=descriptor.duration_hint,
                    style_hints=descriptor.style_hints,
                    audio_url=audio_url,
                    video_urls=videos,
                )
            )

        for warning in warnings:
            logger.warning(f"Asset preparation: {warning}")

        return AssetPreparationResult(scenes=scenes, warnings=warnings)

    @staticmethod
    def _collect_audio(outcome: Any, count: int, warnings: List[str]) -> List[str]:
        if isinstance(outcome, BaseException):
            logger.error(f"Speech synthesis batch failed: {outcome!r}")
            warnings.append(f"Speech synthesis failed for all scenes: {outcome}")
            return [""] * count

        result: SpeechBatchResult = outcome
        if result.errors:
            logger.error(f"Speech synthesis errors: {result.errors}")

        urls = [url or "" for url in (result.audio_urls or [])]
        if len(urls) != count:
            warnings.append(
                f"Speech synthesis returned {len(urls)} results for {count} scenes"
            )
        return (urls + [""] * count)[:count]

    @staticmethod
    def _collect_footage(outcome: Any, count: int, warnings: List[str]) -> List[List[str]]:
        if isinstance(outcome, BaseException):
            logger.error(f"Stock footage batch failed: {outcome!r}")
            warnings.append(f"Stock footage lookup failed for all scenes: {outcome}")
            return [[] for _ in range(count)]

        result: FootageBatchResult = outcome
        if result.errors:
            logger.warning(f"Stock footage errors: {result.errors}")

        urls = [list(items or []) for items in (result.video_urls or [])]
        if len(urls) != count:
            warnings.append(
                f"Stock footage lookup returned {len(urls)} results for {count} scenes"
            )
        return (urls + [[] for _ in range(count)])[:count]
