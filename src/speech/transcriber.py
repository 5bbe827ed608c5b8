"""Speech-to-text for caller utterances using the OpenAI transcription API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from openai import AsyncOpenAI, OpenAIError

from agents.errors import ConfigurationError, RecognitionError
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


class BaseRecognizer(ABC):
    """Interface for all speech recognizers."""

    @abstractmethod
    async def recognize(self, wav_bytes: bytes) -> str:
        """Return the transcript of a WAV buffer; an empty string means no speech."""


class WhisperApiRecognizer(BaseRecognizer):
    """Hosted Whisper transcription."""

    def __init__(self) -> None:
        settings = get_settings()
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY must be configured for speech recognition.")

        self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        self._model = settings.stt_model

    async def recognize(self, wav_bytes: bytes) -> str:
        try:
            response = await self._client.audio.transcriptions.create(
                model=self._model,
                file=("audio.wav", wav_bytes, "audio/wav"),
            )
        except OpenAIError as exc:
            raise RecognitionError(f"Transcription request failed: {exc}") from exc

        text = (getattr(response, "text", "") or "").strip()
        LOGGER.info("Caller said: %s", text or "(empty)")
        return text


def build_recognizer() -> BaseRecognizer:
    """Factory returning the configured recognizer."""

    return WhisperApiRecognizer()
