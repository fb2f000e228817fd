"""
Audio synthesis for narration scripts.

The whole script is synthesized in one TTS request. Without a TTS client,
or when the provider fails, a deterministic mock buffer stands in so the
rest of the pipeline still has something to persist.
"""

import math
from typing import Any, Optional

from . import constants as c
from .logging import get_logger
from .models import NarrationRequest, NarrationScript
from .narration_script import audio_settings_for, voice_for_speaker

logger = get_logger(__name__)


def mock_audio(text_length: int, speed: float = 1.0) -> bytes:
    """Zero-filled placeholder sized like the speech it replaces."""
    size = max(c.MOCK_AUDIO_MIN_BYTES, math.floor(text_length * c.MOCK_AUDIO_BYTES_PER_CHAR / speed))
    return bytes(size)


def provider_voice_id(voice_type: str) -> str:
    """
    Provider voice id for a requested voice type. Types that are not in the
    table go through the narrator mapping first, then the default voice.
    """
    if voice_type in c.PROVIDER_VOICE_IDS:
        return c.PROVIDER_VOICE_IDS[voice_type]
    narrator_voice = voice_for_speaker(c.NARRATOR_SPEAKER, voice_type)
    return c.PROVIDER_VOICE_IDS.get(narrator_voice, c.PROVIDER_VOICE_IDS["default"])


def synthesize_audio(
    script: NarrationScript,
    request: NarrationRequest,
    tts: Optional[Any] = None,
    model: str = c.TTS_MODEL_ID,
) -> bytes:
    text = script.full_text

    if tts is None:
        logger.info("No TTS provider configured, generating mock audio")
        return mock_audio(len(text), request.speed)

    settings = audio_settings_for(c.DEFAULT_EMOTION)
    try:
        return tts.generate(
            voice=provider_voice_id(request.voice_type),
            text=text,
            model=model,
            voice_settings={
                "stability": settings.stability,
                "similarity_boost": settings.clarity,
                "style": settings.style,
                "speed": request.speed,
            },
        )
    except Exception as e:
        logger.warning(f"TTS synthesis failed for {request.request_id}, using mock audio: {e}")
        return mock_audio(len(text), request.speed)
