"""
Speech synthesis provider backed by ElevenLabs.

Generates narration audio for each scene's voiceover text, stores the MP3
under the storage root and returns the public URL the render worker will
download it from. Failures are reported per item and never raised.
"""

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Tuple

import httpx

from content_engine.core.storage import public_file_url, save_generated_file

logger = logging.getLogger(__name__)


MODEL_ID = "eleven_multilingual_v2"

VOICE_SETTINGS = {
    "stability": 0.75,
    "similarity_boost": 0.75,
    "style": 0.5,
    "use_speaker_boost": True,
}

CACHE_TTL_SECONDS = 24 * 60 * 60


@dataclass
class SpeechBatchResult:
    """Result of synthesizing a batch of texts.

    ``audio_urls`` has one entry per input text, empty string for failed items.
    """

    success: bool
    audio_urls: List[str]
    errors: List[str] = field(default_factory=list)


class SpeechProvider(Protocol):
    async def synthesize(self, texts: List[str]) -> SpeechBatchResult: ...


class ElevenLabsSpeechProvider:
    """ElevenLabs text-to-speech client with an in-memory result cache."""

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        base_url: str = "https://api.elevenlabs.io/v1",
        timeout: float = 60.0,
        request_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._voice_id = voice_id
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._request_delay = request_delay
        self._transport = transport
        self._cache: Dict[str, Tuple[str, float]] = {}

    async def synthesize(self, texts: List[str]) -> SpeechBatchResult:
        """
        Generate audio for each text, in input order.

        Items are processed sequentially with a small delay between requests
        to respect provider rate limits.
        """
        audio_urls: List[str] = []
        errors: List[str] = []

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for index, text in enumerate(texts):
                logger.info(f"Synthesizing narration {index + 1}/{len(texts)}")
                audio_url, error = await self._synthesize_one(client, text)
                audio_urls.append(audio_url)
                if error:
                    errors.append(f"Segment {index + 1}: {error}")

                if self._request_delay and index < len(texts) - 1:
                    await asyncio.sleep(self._request_delay)

        return SpeechBatchResult(success=not errors, audio_urls=audio_urls, errors=errors)

    async def _synthesize_one(self, client: httpx.AsyncClient, text: str) -> Tuple[str, Optional[str]]:
        if not self._api_key:
            return "", "TTS service not configured. Please set ELEVENLABS_API_KEY."

        if not text or not text.strip():
            return "", "Text cannot be empty"

        cache_key = hashlib.sha256(text.encode("utf-8")).hexdigest()
        cached = self._cache.get(cache_key)
        if cached and time.monotonic() - cached[1] < CACHE_TTL_SECONDS:
            logger.debug(f"TTS cache hit for text: {text[:50]}...")
            return cached[0], None

        try:
            response = await client.post(
                f"{self._base_url}/text-to-speech/{self._voice_id}",
                json={
                    "text": text.strip(),
                    "model_id": MODEL_ID,
                    "voice_settings": VOICE_SETTINGS,
                },
                headers={
                    "Accept": "audio/mpeg",
                    "xi-api-key": self._api_key,
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"ElevenLabs returned {e.response.status_code}")
            return "", _describe_status_error(e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning(f"ElevenLabs request failed: {e}")
            return "", str(e) or "Failed to generate audio"

        filename = f"tts-{int(time.time() * 1000)}-{cache_key[:8]}.mp3"
        try:
            await save_generated_file("audio", filename, response.content)
        except (OSError, ValueError) as e:
            return "", f"Failed to store audio file: {e}"

        audio_url = public_file_url("audio", filename)
        self._cache[cache_key] = (audio_url, time.monotonic())
        logger.info(f"Narration audio stored: {audio_url}")
        return audio_url, None


def _describe_status_error(status_code: int) -> str:
    if status_code == 401:
        return "Invalid ElevenLabs API key"
    if status_code == 429:
        return "ElevenLabs rate limit exceeded. Please try again later."
    if status_code == 400:
        return "Invalid text for TTS generation"
    return f"Failed to generate audio (HTTP {status_code})"
