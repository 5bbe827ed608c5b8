"""Text-to-speech synthesis of assistant replies via ElevenLabs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from agents.errors import ConfigurationError, SynthesisError
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


class BaseSynthesizer(ABC):
    """Interface for all text-to-speech synthesizers."""

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Synthesize speech for the given text."""


class ElevenLabsSynthesizer(BaseSynthesizer):
    """Wrapper around the ElevenLabs REST API returning MP3 audio."""

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.eleven_api_key or not settings.eleven_voice_id:
            raise ConfigurationError("ELEVEN_API_KEY and ELEVEN_VOICE_ID must be configured.")

        self._api_key = settings.eleven_api_key
        self._url = ELEVENLABS_TTS_URL.format(voice_id=settings.eleven_voice_id)
        self._model_id = settings.eleven_model_id
        self._voice_settings = {
            "stability": settings.eleven_stability,
            "similarity_boost": settings.eleven_similarity_boost,
        }

    def _headers(self) -> dict[str, str]:
        return {
            "xi-api-key": self._api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }

    async def synthesize(self, text: str) -> bytes:
        payload = {
            "text": text,
            "model_id": self._model_id,
            "voice_settings": self._voice_settings,
        }
        try:
            async with httpx.AsyncClient(timeout=60) as client:
                response = await client.post(self._url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SynthesisError(f"ElevenLabs request failed: {exc}") from exc

        if not response.content:
            raise SynthesisError("ElevenLabs returned no audio.")
        return response.content


def build_synthesizer() -> BaseSynthesizer:
    """Factory returning the configured synthesizer."""

    return ElevenLabsSynthesizer()
