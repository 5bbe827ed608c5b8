from __future__ import annotations

import base64
import json

import pytest
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect

from agents.greeting import GreetingCache
from fakes import FakeLLM, FakeRecognizer, FakeRenderer, FakeSink, FakeSynthesizer, FakeTranscoder


def _payload(message: str) -> bytes:
    data = json.loads(message)
    assert data["event"] == "media"
    return base64.b64decode(data["media"]["payload"])


@pytest.fixture()
def services(deps):
    return deps.CallServices(
        transcoder=FakeTranscoder(),
        recognizer=FakeRecognizer("What time do you open?"),
        llm=FakeLLM("We open at nine. Shall I hold a spot?"),
        synthesizer=FakeSynthesizer(b"R" * 500),
    )


def test_liveness_banner(app):
    with TestClient(app) as client:
        response = client.get("/")
    assert response.status_code == 200
    assert response.text == "Voice bridge OK"


def test_health_reports_cold_greeting_without_credentials(app):
    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "greeting_ready": False}


def test_call_over_websocket_greets_answers_and_stops(app, deps, services):
    greeting = GreetingCache("Hello!", FakeRenderer(b"G" * 100))
    app.dependency_overrides[deps.get_services] = lambda: services
    app.dependency_overrides[deps.get_greeting_cache] = lambda: greeting

    with TestClient(app) as client:
        with client.websocket_connect("/voicebot") as ws:
            ws.send_text(json.dumps({"event": "start"}))
            assert _payload(ws.receive_text()) == b"G" * 100

            ws.send_text(
                json.dumps({"event": "media", "media": {"payload": base64.b64encode(b"\x00\x01" * 80).decode()}})
            )
            ws.send_bytes(b"\x02\x03" * 80)

            assert _payload(ws.receive_text()) == b"R" * 320
            assert _payload(ws.receive_text()) == b"R" * 180

            ws.send_text(json.dumps({"event": "stop"}))
            with pytest.raises(WebSocketDisconnect):
                ws.receive_text()

    assert services.recognizer.calls == [b"WAV:" + b"\x00\x01" * 80 + b"\x02\x03" * 80]
    assert services.synthesizer.texts == ["We open at nine. Shall I hold a spot?"]


def test_websocket_closes_when_services_are_not_configured(app, deps):
    app.dependency_overrides[deps.get_services] = lambda: None

    with TestClient(app) as client:
        with client.websocket_connect("/voicebot") as ws:
            with pytest.raises(WebSocketDisconnect) as excinfo:
                ws.receive_text()

    assert excinfo.value.code == 1011


def test_get_services_returns_none_without_credentials(deps):
    assert deps.get_services() is None


def test_open_session_takes_timings_from_settings(services):
    session = services.open_session(FakeSink(), GreetingCache("Hi", FakeRenderer()))

    assert session.timings.silence_threshold == pytest.approx(0.1)
    assert session.timings.guard_interval == 0
    assert session.timings.step_timeout is None
