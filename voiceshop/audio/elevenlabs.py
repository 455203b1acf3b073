"""
ElevenLabs text-to-speech client
"""
import logging
from typing import Any, Dict, Optional

import requests

from ..errors import SynthesisError, SynthesisUnavailable
from .player import SynthesizedAudio

logger = logging.getLogger(__name__)

API_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"
DEFAULT_MODEL_ID = "eleven_monolingual_v1"
DEFAULT_OUTPUT_FORMAT = "pcm_22050"
DEFAULT_TIMEOUT = 10.0

VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.8,
    "style": 0.3,
    "use_speaker_boost": True,
}


def _format_details(output_format: str) -> Dict[str, Any]:
    """contentType/sampleRate for an ElevenLabs ``output_format`` value."""
    codec, _, rate = output_format.partition("_")
    if codec == "pcm":
        return {"content_type": "audio/pcm", "sample_rate": int(rate)}
    if codec == "mp3":
        return {"content_type": "audio/mpeg", "sample_rate": None}
    raise ValueError(f"Unsupported ElevenLabs output format: {output_format}")


class ElevenLabsSynthesizer:
    """Synthesizes speech through the ElevenLabs REST API"""

    def __init__(
        self,
        api_key: Optional[str],
        voice_id: str = DEFAULT_VOICE_ID,
        model_id: str = DEFAULT_MODEL_ID,
        output_format: str = DEFAULT_OUTPUT_FORMAT,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.output_format = output_format
        self.timeout = timeout
        self.session = session or requests.Session()
        self._details = _format_details(output_format)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def synthesize(self, text: str) -> SynthesizedAudio:
        """
        Raises:
            SynthesisUnavailable: no API key configured
            SynthesisError: the API call failed
        """
        if not self.configured:
            raise SynthesisUnavailable("ElevenLabs not configured")

        logger.info("Calling ElevenLabs TTS for: %s...", text[:50])
        try:
            response = self.session.post(
                API_URL.format(voice_id=self.voice_id),
                params={"output_format": self.output_format},
                headers={
                    "Accept": self._details["content_type"],
                    "Content-Type": "application/json",
                    "xi-api-key": self.api_key,
                },
                json={
                    "text": text,
                    "model_id": self.model_id,
                    "voice_settings": VOICE_SETTINGS,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"ElevenLabs request failed: {e}") from e

        if response.status_code != 200:
            raise SynthesisError(f"ElevenLabs API error: {response.status_code} - {response.text[:200]}")
        if not response.content:
            raise SynthesisError("ElevenLabs returned no audio")

        logger.info("ElevenLabs TTS successful, %d bytes", len(response.content))
        return SynthesizedAudio(
            data=response.content,
            content_type=self._details["content_type"],
            sample_rate=self._details["sample_rate"],
        )
