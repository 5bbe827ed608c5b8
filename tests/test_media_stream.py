from __future__ import annotations

import asyncio
import base64
import json

import pytest
from fastapi.websockets import WebSocketState

from agents.errors import TransportError
from integrations.media_stream import (
    StreamEvent,
    WebSocketSink,
    build_media_message,
    parse_binary_message,
    parse_text_message,
)


def test_lifecycle_events():
    assert parse_text_message(json.dumps({"event": "start", "start": {"callSid": "CA1"}})) == StreamEvent("start")
    assert parse_text_message(json.dumps({"event": "stop"})) == StreamEvent("stop")


def test_media_event_payload_is_base64_decoded():
    payload = base64.b64encode(b"\xff" * 10).decode("ascii")
    event = parse_text_message(json.dumps({"event": "media", "media": {"payload": payload}}))
    assert event == StreamEvent("media", b"\xff" * 10)


def test_media_without_payload_or_with_bad_base64_is_dropped():
    assert parse_text_message(json.dumps({"event": "media", "media": {}})) is None
    assert parse_text_message(json.dumps({"event": "media"})) is None
    assert parse_text_message(json.dumps({"event": "media", "media": {"payload": "%%%"}})) is None


def test_unknown_and_non_object_json_is_ignored():
    assert parse_text_message(json.dumps({"event": "connected"})) is None
    assert parse_text_message("[1, 2, 3]") is None


def test_non_json_text_and_binary_are_raw_audio():
    assert parse_text_message("not json at all") == StreamEvent("media", b"not json at all")
    assert parse_binary_message(b"\x00\x01") == StreamEvent("media", b"\x00\x01")
    assert parse_binary_message(b"") is None


def test_build_media_message():
    message = json.loads(build_media_message(b"\x01\x02\x03"))
    assert message["event"] == "media"
    assert base64.b64decode(message["media"]["payload"]) == b"\x01\x02\x03"


class _Socket:
    def __init__(self, *, fail: bool = False) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.texts: list[str] = []
        self.close_codes: list[int] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("Cannot call \"send\" once a close message has been sent.")
        self.texts.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_codes.append(code)


def test_websocket_sink_sends_media_json():
    socket = _Socket()
    sink = WebSocketSink(socket)

    assert asyncio.run(sink.send_media(b"\x07\x08")) is True
    assert json.loads(socket.texts[0])["media"]["payload"] == base64.b64encode(b"\x07\x08").decode("ascii")


def test_websocket_sink_reports_dropped_frames_after_close():
    socket = _Socket()
    sink = WebSocketSink(socket)
    sink.mark_closed()

    assert sink.is_open is False
    assert asyncio.run(sink.send_media(b"\x00")) is False
    assert socket.texts == []


def test_websocket_sink_raises_when_the_transport_fails():
    sink = WebSocketSink(_Socket(fail=True))

    with pytest.raises(TransportError):
        asyncio.run(sink.send_media(b"\x00"))
    assert sink.is_open is True
