from typing import Any, Dict, Optional

from . import constants as c
from .http_client import JsonApiClient
from .logging import APIError, get_logger

logger = get_logger(__name__)


class ElevenLabsClient(JsonApiClient):
    """Text-to-speech through the ElevenLabs REST API."""

    name = "ElevenLabs"

    def __init__(self, api_key: str, base_url: str = c.ELEVENLABS_BASE_URL, timeout: int = 60, **kwargs):
        super().__init__(base_url, timeout=timeout, **kwargs)
        self.api_key = api_key

    def generate(
        self,
        voice: str,
        text: str,
        model: str = c.TTS_MODEL_ID,
        voice_settings: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """
        Synthesizes `text` with the given provider voice id.

        Returns:
            MP3 audio bytes

        Raises:
            APIError: On any transport or HTTP error, or an empty response
        """
        voice_settings = voice_settings or {}
        body = {
            "text": text,
            "model_id": model,
            "voice_settings": {
                "stability": voice_settings.get("stability", 0.5),
                "similarity_boost": voice_settings.get("similarity_boost", 0.75),
                "style": voice_settings.get("style", 0.0),
            },
        }
        if voice_settings.get("speed") is not None:
            body["voice_settings"]["speed"] = voice_settings["speed"]
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }

        logger.info(f"Synthesizing {len(text)} characters with voice {voice}")
        response = self._request("POST", f"v1/text-to-speech/{voice}", json=body, headers=headers)
        if not response.content:
            raise APIError(f"ElevenLabs returned no audio for voice {voice}")
        return response.content
