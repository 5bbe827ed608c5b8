"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Request, WebSocket

from agents.call_session import CallSession, SessionTimings
from agents.dialogue import DialogueEngine
from agents.errors import ConfigurationError
from agents.greeting import GreetingCache
from config.settings import get_settings
from llm.base import BaseLLMClient
from speech.transcriber import BaseRecognizer
from speech.tts import BaseSynthesizer
from telephony.playback import MediaSink, PlaybackStreamer
from telephony.transcoder import AudioTranscoder

LOGGER = logging.getLogger(__name__)


@dataclass
class CallServices:
    """External capabilities shared by every call in the process."""

    transcoder: AudioTranscoder
    recognizer: BaseRecognizer
    llm: BaseLLMClient
    synthesizer: BaseSynthesizer

    async def render_greeting(self, text: str) -> bytes:
        audio = await self.synthesizer.synthesize(text)
        return await self.transcoder.to_wire_format(audio)

    def open_session(
        self,
        sink: MediaSink,
        greeting: GreetingCache,
        *,
        session_id: str | None = None,
    ) -> CallSession:
        settings = get_settings()
        return CallSession(
            session_id or uuid.uuid4().hex[:12],
            sink,
            transcoder=self.transcoder,
            recognizer=self.recognizer,
            dialogue=DialogueEngine(
                self.llm,
                max_turns=settings.history_max_turns,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            ),
            synthesizer=self.synthesizer,
            greeting=greeting,
            playback=PlaybackStreamer(
                frame_size=settings.playback_frame_bytes,
                frame_ms=settings.playback_frame_ms,
            ),
            inbound_codec=settings.inbound_codec,
            timings=SessionTimings(
                silence_threshold=settings.silence_threshold_ms / 1000,
                guard_interval=settings.post_playback_guard_ms / 1000,
                step_timeout=settings.step_timeout_seconds,
            ),
        )


@lru_cache(maxsize=1)
def _services_factory() -> CallServices:
    # Lazy imports keep SDK clients out of module import time.
    from llm.factory import build_llm_client
    from speech.transcriber import build_recognizer
    from speech.tts import build_synthesizer

    settings = get_settings()
    return CallServices(
        transcoder=AudioTranscoder(outbound_codec=settings.outbound_codec),
        recognizer=build_recognizer(),
        llm=build_llm_client(),
        synthesizer=build_synthesizer(),
    )


def get_services() -> CallServices | None:
    """Return the shared services, or ``None`` while credentials are missing."""

    try:
        return _services_factory()
    except ConfigurationError as exc:
        LOGGER.error("Call services unavailable: %s", exc)
        return None


async def render_greeting(text: str) -> bytes:
    # ConfigurationError propagates to the cache, which logs it and stays cold.
    return await _services_factory().render_greeting(text)


def build_greeting_cache() -> GreetingCache:
    return GreetingCache(get_settings().greeting_text, render_greeting)


def get_greeting_cache(websocket: WebSocket) -> GreetingCache:
    return websocket.app.state.greeting_cache


def get_greeting_cache_http(request: Request) -> GreetingCache:
    return request.app.state.greeting_cache
