"""Media-stream WebSocket protocol: inbound event parsing and outbound media frames."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Literal

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect, WebSocketState

from agents.errors import TransportError

LOGGER = logging.getLogger(__name__)

EventKind = Literal["start", "media", "stop"]


@dataclass(frozen=True, slots=True)
class StreamEvent:
    kind: EventKind
    payload: bytes = b""


def parse_text_message(text: str) -> StreamEvent | None:
    """Parse a text frame. Non-JSON text is treated as raw audio, like a binary frame."""

    try:
        message: Any = json.loads(text)
    except json.JSONDecodeError:
        return parse_binary_message(text.encode("utf-8"))

    if not isinstance(message, dict):
        return None

    event = str(message.get("event") or "")
    if event == "start":
        return StreamEvent("start")
    if event == "stop":
        return StreamEvent("stop")
    if event == "media":
        media = message.get("media") or {}
        payload = media.get("payload") if isinstance(media, dict) else None
        if not isinstance(payload, str) or not payload:
            return None
        try:
            return StreamEvent("media", base64.b64decode(payload, validate=True))
        except (binascii.Error, ValueError):
            LOGGER.warning("Dropping media event with invalid base64 payload")
            return None
    return None


def parse_binary_message(data: bytes) -> StreamEvent | None:
    if not data:
        return None
    return StreamEvent("media", bytes(data))


def build_media_message(payload: bytes) -> str:
    return json.dumps({"event": "media", "media": {"payload": base64.b64encode(payload).decode("ascii")}})


class WebSocketSink:
    """Outbound media sink over a FastAPI WebSocket.

    Sends after the connection is gone are dropped and reported as not sent;
    a send that fails on a live connection raises :class:`TransportError`.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send_media(self, payload: bytes) -> bool:
        if not self.is_open:
            return False
        try:
            await self._websocket.send_text(build_media_message(payload))
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            raise TransportError(f"media send failed: {exc}") from exc
        return True

    async def close(self, code: int = 1000) -> None:
        if not self.is_open:
            self._closed = True
            return
        self._closed = True
        try:
            await self._websocket.close(code=code)
        except (RuntimeError, OSError) as exc:
            LOGGER.debug("Close on finished socket ignored: %s", exc)
