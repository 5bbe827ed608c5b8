from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

LOGGER = logging.getLogger(__name__)

DEFAULT_SILENCE_THRESHOLD_S = 0.8


class SilenceSegmenter:
    """Fixed-delay end-of-utterance detection for telephone audio.

    Every pushed frame is buffered and restarts a single deadline. When the
    deadline passes with audio in the buffer, ``on_utterance`` is called once.
    The callback receives nothing; it reads the audio with :meth:`take`.
    """

    def __init__(
        self,
        on_utterance: Callable[[], None],
        *,
        silence_threshold: float = DEFAULT_SILENCE_THRESHOLD_S,
    ) -> None:
        self._on_utterance = on_utterance
        self._threshold = silence_threshold
        self._chunks: list[bytes] = []
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def buffered_bytes(self) -> int:
        return sum(len(chunk) for chunk in self._chunks)

    def push(self, frame: bytes) -> None:
        if frame:
            self._chunks.append(bytes(frame))
        self._restart()

    def take(self) -> bytes:
        """Return everything buffered so far and leave the buffer empty."""

        chunks, self._chunks = self._chunks, []
        return b"".join(chunks)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _restart(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._threshold, self._expire)

    def _expire(self) -> None:
        self._timer = None
        if not self._chunks:
            return
        LOGGER.debug("Silence after %d buffered bytes", self.buffered_bytes)
        self._on_utterance()
