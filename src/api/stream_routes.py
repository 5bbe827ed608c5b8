"""Media-stream WebSocket endpoint: one CallSession per connection."""

from __future__ import annotations

import logging

from fastapi import Depends, WebSocket

from agents.greeting import GreetingCache
from api.dependencies import CallServices, get_greeting_cache, get_services
from integrations.media_stream import WebSocketSink, parse_binary_message, parse_text_message

LOGGER = logging.getLogger(__name__)


async def media_stream(
    websocket: WebSocket,
    services: CallServices | None = Depends(get_services),
    greeting: GreetingCache = Depends(get_greeting_cache),
) -> None:
    await websocket.accept()
    if services is None:
        await websocket.close(code=1011)
        return

    sink = WebSocketSink(websocket)
    session = services.open_session(sink, greeting)
    LOGGER.info("[%s] WS connected", session.session_id)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            if message.get("text") is not None:
                event = parse_text_message(message["text"])
            elif message.get("bytes") is not None:
                event = parse_binary_message(message["bytes"])
            else:
                continue

            if event is None:
                continue
            await session.handle_event(event)
            if session.closed:
                break
    finally:
        sink.mark_closed()
        session.on_closed()
        LOGGER.info("[%s] WS closed", session.session_id)
