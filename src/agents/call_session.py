"""Per-call orchestration: turn taking, echo guard and the single-flight reply pipeline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from agents.dialogue import DialogueEngine
from agents.errors import (
    CallPipelineError,
    ConversionError,
    GenerationError,
    InvalidTransitionError,
    RecognitionError,
    SynthesisError,
)
from agents.greeting import GreetingCache
from agents.schemas import ConversationTurn
from config.settings import AudioCodec
from integrations.media_stream import StreamEvent
from speech.transcriber import BaseRecognizer
from speech.tts import BaseSynthesizer
from telephony.playback import MediaSink, PlaybackStreamer
from telephony.segmenter import SilenceSegmenter
from telephony.transcoder import AudioTranscoder

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CallState(str, Enum):
    CONNECTING = "connecting"
    GREETING = "greeting"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"
    CLOSED = "closed"


_TRANSITIONS: dict[CallState, frozenset[CallState]] = {
    CallState.CONNECTING: frozenset({CallState.GREETING, CallState.CLOSED}),
    CallState.GREETING: frozenset({CallState.LISTENING, CallState.CLOSED}),
    CallState.LISTENING: frozenset({CallState.PROCESSING, CallState.CLOSED}),
    CallState.PROCESSING: frozenset({CallState.SPEAKING, CallState.LISTENING, CallState.CLOSED}),
    CallState.SPEAKING: frozenset({CallState.LISTENING, CallState.CLOSED}),
    CallState.CLOSED: frozenset(),
}

# Own speech is on the line (plus the trailing guard interval).
_MUTED_STATES = frozenset({CallState.GREETING, CallState.SPEAKING})
_BUSY_STATES = frozenset({CallState.PROCESSING, CallState.SPEAKING})


@dataclass(frozen=True, slots=True)
class SessionTimings:
    silence_threshold: float
    guard_interval: float
    step_timeout: float | None = None


class CallSession:
    """State machine for one caller connection.

    Transport events, timer expiries and pipeline steps all run on one event
    loop, so the session state needs no locking. Only ``LISTENING`` lets an
    end-of-utterance start a new cycle; the other states encode the mute and
    busy guards.
    """

    def __init__(
        self,
        session_id: str,
        sink: MediaSink,
        *,
        transcoder: AudioTranscoder,
        recognizer: BaseRecognizer,
        dialogue: DialogueEngine,
        synthesizer: BaseSynthesizer,
        greeting: GreetingCache,
        playback: PlaybackStreamer | None = None,
        inbound_codec: AudioCodec = "s16le",
        timings: SessionTimings,
    ) -> None:
        self.session_id = session_id
        self._sink = sink
        self._transcoder = transcoder
        self._recognizer = recognizer
        self._dialogue = dialogue
        self._synthesizer = synthesizer
        self._greeting = greeting
        self._playback = playback or PlaybackStreamer()
        self._inbound_codec = inbound_codec
        self._timings = timings

        self._state = CallState.CONNECTING
        self._segmenter = SilenceSegmenter(
            self._on_utterance_ready,
            silence_threshold=self._timings.silence_threshold,
        )
        self._greeting_task: asyncio.Task[None] | None = None
        self._pipeline_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is CallState.CLOSED

    @property
    def mute(self) -> bool:
        return self._state in _MUTED_STATES

    @property
    def pipeline_busy(self) -> bool:
        return self._state in _BUSY_STATES

    @property
    def history(self) -> list[ConversationTurn]:
        return self._dialogue.history

    @property
    def buffered_bytes(self) -> int:
        return self._segmenter.buffered_bytes

    @property
    def timings(self) -> SessionTimings:
        return self._timings

    # Transport events

    async def handle_event(self, event: StreamEvent) -> None:
        if event.kind == "start":
            self.on_start()
        elif event.kind == "media":
            self.on_media(event.payload)
        elif event.kind == "stop":
            await self.on_stop()

    def on_start(self) -> None:
        if self._state is not CallState.CONNECTING:
            LOGGER.warning("[%s] Ignoring start event while %s", self.session_id, self._state.value)
            return
        self._transition(CallState.GREETING)
        self._greeting_task = asyncio.create_task(self._greet())

    def on_media(self, frame: bytes) -> None:
        if self.closed:
            return
        self._segmenter.push(frame)

    async def on_stop(self) -> None:
        if self.closed:
            return
        LOGGER.info("[%s] Stop event", self.session_id)
        self._segmenter.cancel()
        self._transition(CallState.CLOSED)
        await self._sink.close()

    def on_closed(self) -> None:
        """Peer went away; whatever is in flight finishes without sending."""

        self._segmenter.cancel()
        if not self.closed:
            LOGGER.info("[%s] Connection closed by peer", self.session_id)
            self._transition(CallState.CLOSED)

    async def wait_idle(self) -> None:
        """Wait for the greeting and any running cycle to finish."""

        for task in (self._greeting_task, self._pipeline_task):
            if task is not None and not task.done():
                await asyncio.wait({task})

    # Internals

    def _transition(self, target: CallState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state, target)
        LOGGER.debug("[%s] %s -> %s", self.session_id, self._state.value, target.value)
        self._state = target

    async def _greet(self) -> None:
        try:
            audio = await self._greeting.ensure_ready()
            sent = 0
            if audio:
                sent = await self._playback.stream(self._sink, audio)
            else:
                LOGGER.warning("[%s] Greeting audio unavailable, skipping playback", self.session_id)
            self._dialogue.record_turn("assistant", self._greeting.text)
            if sent:
                await asyncio.sleep(self._timings.guard_interval)
        except Exception:
            LOGGER.exception("[%s] Greeting send failed, closing call", self.session_id)
            await self.on_stop()
            return

        if self._state is CallState.GREETING:
            self._transition(CallState.LISTENING)

    def _on_utterance_ready(self) -> None:
        if self._state is not CallState.LISTENING:
            LOGGER.debug("[%s] End of utterance ignored while %s", self.session_id, self._state.value)
            return
        audio = self._segmenter.take()
        if not audio:
            return
        self._transition(CallState.PROCESSING)
        self._pipeline_task = asyncio.create_task(self._run_cycle(audio))

    async def _run_cycle(self, audio: bytes) -> None:
        try:
            await self._respond(audio)
        except CallPipelineError as exc:
            LOGGER.warning("[%s] Cycle aborted: %s", self.session_id, exc)
        except Exception:
            LOGGER.exception("[%s] Cycle failed", self.session_id)
        finally:
            if self._state in _BUSY_STATES:
                self._transition(CallState.LISTENING)

    async def _respond(self, audio: bytes) -> None:
        LOGGER.info("[%s] Processing %d bytes of caller audio", self.session_id, len(audio))
        wav = await self._step(
            self._transcoder.to_recognizer_format(audio, self._inbound_codec), ConversionError, "transcode"
        )
        transcript = (await self._step(self._recognizer.recognize(wav), RecognitionError, "recognize")).strip()
        if not transcript:
            LOGGER.info("[%s] No speech recognized", self.session_id)
            return
        if self.closed:
            return

        self._dialogue.record_turn("caller", transcript)
        reply = await self._step(
            self._dialogue.generate_reply(self._dialogue.history, transcript), GenerationError, "reply"
        )
        if not reply:
            LOGGER.info("[%s] Empty reply, nothing to say", self.session_id)
            return
        if self.closed:
            return

        self._dialogue.record_turn("assistant", reply)
        LOGGER.info("[%s] Replying: %s", self.session_id, reply)
        self._transition(CallState.SPEAKING)

        speech = await self._step(self._synthesizer.synthesize(reply), SynthesisError, "synthesize")
        wire_audio = await self._step(self._transcoder.to_wire_format(speech), ConversionError, "encode")
        sent = await self._playback.stream(self._sink, wire_audio)
        if sent and not self.closed:
            await asyncio.sleep(self._timings.guard_interval)

    async def _step(self, awaitable: Awaitable[T], error_cls: type[CallPipelineError], label: str) -> T:
        timeout = self._timings.step_timeout
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as exc:
            raise error_cls(f"{label} timed out after {timeout:.1f}s") from exc
