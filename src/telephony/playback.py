"""Real-time paced playback of synthesized audio to the caller."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from typing import Protocol

LOGGER = logging.getLogger(__name__)

FRAME_BYTES = 320  # 20 ms of 8 kHz, 16-bit mono PCM
FRAME_MS = 20


class MediaSink(Protocol):
    """Outbound side of a call connection."""

    @property
    def is_open(self) -> bool:  # pragma: no cover - protocol stub
        ...

    async def send_media(self, payload: bytes) -> bool:  # pragma: no cover - protocol stub
        """Send one frame; ``False`` means it was dropped because the sink is closed."""
        ...

    async def close(self) -> None:  # pragma: no cover - protocol stub
        ...


def split_frames(audio: bytes, frame_size: int = FRAME_BYTES) -> Iterator[bytes]:
    """Yield consecutive ``frame_size`` slices of ``audio``; the last one may be shorter."""

    if frame_size <= 0:
        raise ValueError("frame_size must be positive")
    view = memoryview(audio)
    for i in range(0, len(audio), frame_size):
        yield bytes(view[i : i + frame_size])


class PlaybackStreamer:
    """Sends audio as fixed-size frames spaced by a fixed delay.

    The far end plays frames as they arrive and has no buffering of its own,
    so total send time has to track the audio duration.
    """

    def __init__(self, *, frame_size: int = FRAME_BYTES, frame_ms: int = FRAME_MS) -> None:
        if frame_size <= 0:
            raise ValueError("frame_size must be positive")
        self.frame_size = frame_size
        self.delay = frame_ms / 1000

    async def stream(self, sink: MediaSink, audio: bytes) -> int:
        """Send ``audio`` to ``sink``; returns the number of frames sent."""

        sent = 0
        for frame in split_frames(audio, self.frame_size):
            if not sink.is_open:
                LOGGER.debug("Connection closed, abandoning playback after %d frames", sent)
                break
            if not await sink.send_media(frame):
                break
            sent += 1
            await asyncio.sleep(self.delay)
        return sent
