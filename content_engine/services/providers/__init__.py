"""
External asset providers used by the render pipeline.
"""

from .footage import FootageBatchResult, FootageProvider, PexelsFootageProvider
from .speech import ElevenLabsSpeechProvider, SpeechBatchResult, SpeechProvider

__all__ = [
    "ElevenLabsSpeechProvider",
    "FootageBatchResult",
    "FootageProvider",
    "PexelsFootageProvider",
    "SpeechBatchResult",
    "SpeechProvider",
]
