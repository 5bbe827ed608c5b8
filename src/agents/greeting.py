"""Process-wide cache of the rendered opening line."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from agents.errors import CallPipelineError, ConfigurationError

LOGGER = logging.getLogger(__name__)

GreetingRenderer = Callable[[str], Awaitable[bytes]]


class GreetingCache:
    """Lazily rendered greeting audio in wire format, shared read-only by all calls.

    Concurrent first use is coalesced onto a single warm task. A failed warm
    leaves the cache empty so the next caller renders it again.
    """

    def __init__(self, text: str, render: GreetingRenderer) -> None:
        self.text = text
        self._render = render
        self._audio: bytes | None = None
        self._warm_task: asyncio.Task[bytes | None] | None = None

    @property
    def ready(self) -> bool:
        return self._audio is not None

    @property
    def audio(self) -> bytes | None:
        return self._audio

    async def ensure_ready(self) -> bytes | None:
        """Return the greeting audio, rendering it first if needed; ``None`` if rendering failed."""

        if self._audio is not None:
            return self._audio
        if self._warm_task is None or self._warm_task.done():
            self._warm_task = asyncio.create_task(self._warm())
        # Shielded so a hung-up caller does not cancel the warm other calls are waiting on.
        return await asyncio.shield(self._warm_task)

    async def close(self) -> None:
        task = self._warm_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _warm(self) -> bytes | None:
        LOGGER.info("Warming up greeting...")
        try:
            audio = await self._render(self.text)
        except (CallPipelineError, ConfigurationError) as exc:
            LOGGER.warning("Greeting warmup skipped: %s", exc)
            return None
        except Exception:
            LOGGER.exception("Greeting warmup failed")
            return None

        if not audio:
            LOGGER.warning("Greeting warmup produced no audio")
            return None
        self._audio = audio
        LOGGER.info("Greeting ready (%d bytes)", len(audio))
        return audio
