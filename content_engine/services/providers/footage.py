"""
Stock footage provider backed by the Pexels video API.

Turns a scene's visual intent into a keyword query and returns direct video
file URLs. Failures are reported per item and never raised.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx

logger = logging.getLogger(__name__)


# Preferred quality first, then the remaining ones in this order
QUALITY_ORDER = ["hd", "sd", "full_hd", "4k"]

DEFAULT_ORIENTATION = "portrait"

MAX_KEYWORDS = 5

CACHE_TTL_SECONDS = 60 * 60

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
    "be", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "must", "shall", "can", "need",
    "that", "this", "these", "those", "it", "its", "show", "showing",
    "display", "displays", "featuring", "features", "scene", "shot",
})


@dataclass
class FootageBatchResult:
    """Result of searching footage for a batch of visual intents.

    ``video_urls`` has one list per input intent, empty for failed items.
    """

    success: bool
    video_urls: List[List[str]]
    errors: List[str] = field(default_factory=list)


class FootageProvider(Protocol):
    async def search(self, visual_intents: List[str], per_scene: int) -> FootageBatchResult: ...


def extract_keywords(visual_intent: str) -> List[str]:
    """
    Extract search keywords from a free-text visual intent.

    Example:
        >>> extract_keywords("A drone shot showing the city skyline at night")
        ['drone', 'city', 'skyline', 'night']
    """
    words = re.sub(r"[^\w\s]", " ", visual_intent.lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) > 2 and word not in STOP_WORDS and word not in keywords:
            keywords.append(word)
    return keywords[:MAX_KEYWORDS]


def pick_video_file(video_files: List[Dict[str, Any]]) -> Optional[str]:
    """Return the link of the best-quality file, preferring HD."""
    if not video_files:
        return None

    for quality in QUALITY_ORDER:
        for video_file in video_files:
            if video_file.get("quality") == quality and video_file.get("link"):
                return video_file["link"]

    return video_files[0].get("link")


class PexelsFootageProvider:
    """Pexels video search client with an in-memory query cache."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.pexels.com/videos",
        orientation: str = DEFAULT_ORIENTATION,
        timeout: float = 10.0,
        request_delay: float = 0.2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._orientation = orientation
        self._timeout = timeout
        self._request_delay = request_delay
        self._transport = transport
        self._cache: Dict[str, Tuple[List[str], float]] = {}

    async def search(self, visual_intents: List[str], per_scene: int = 1) -> FootageBatchResult:
        """Look up footage for each visual intent, in input order."""
        video_urls: List[List[str]] = []
        errors: List[str] = []

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for index, intent in enumerate(visual_intents):
                logger.info(f"Fetching footage for scene {index + 1}/{len(visual_intents)}")
                urls, error = await self._search_one(client, intent, per_scene)
                video_urls.append(urls)
                if error:
                    errors.append(f"Scene {index + 1}: {error}")

                if self._request_delay and index < len(visual_intents) - 1:
                    await asyncio.sleep(self._request_delay)

        return FootageBatchResult(success=not errors, video_urls=video_urls, errors=errors)

    async def _search_one(
        self,
        client: httpx.AsyncClient,
        visual_intent: str,
        count: int,
    ) -> Tuple[List[str], Optional[str]]:
        if not self._api_key:
            return [], "Pexels API key not configured"

        query = " ".join(extract_keywords(visual_intent or ""))
        if not query:
            return [], "Search query cannot be empty"

        cache_key = f"{query}-{self._orientation}-{count}"
        cached = self._cache.get(cache_key)
        if cached and time.monotonic() - cached[1] < CACHE_TTL_SECONDS:
            logger.debug(f"Footage cache hit for query: {query}")
            return list(cached[0]), None

        logger.info(f'Visual intent "{visual_intent[:60]}" -> query "{query}"')
        try:
            response = await client.get(
                f"{self._base_url}/search",
                headers={"Authorization": self._api_key},
                params={
                    "query": query,
                    # Fetch extra in case some lack a usable file
                    "per_page": min(count * 2, 20),
                    "orientation": self._orientation,
                },
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                return [], "Pexels rate limit exceeded"
            return [], f"Pexels search failed (HTTP {e.response.status_code})"
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Pexels search failed: {e}")
            return [], str(e) or "Failed to search stock footage"

        videos = payload.get("videos") if isinstance(payload, dict) else None
        if not isinstance(videos, list):
            logger.warning(f"Unexpected Pexels response for query: {query}")
            return [], "Unexpected Pexels response format"

        urls: List[str] = []
        for video in videos:
            if not isinstance(video, dict):
                continue
            video_files = video.get("video_files")
            if not isinstance(video_files, list):
                continue
            link = pick_video_file([f for f in video_files if isinstance(f, dict)])
            if link:
                urls.append(link)
            if len(urls) >= count:
                break

        if not urls:
            return [], f'No footage found for "{query}"'

        self._cache[cache_key] = (urls, time.monotonic())
        logger.info(f"Found {len(urls)} videos for: {query}")
        return urls, None
