from __future__ import annotations

import pytest
from pydantic import ValidationError

from config.settings import Settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("IN_CODEC", "INBOUND_CODEC", "SILENCE_THRESHOLD_MS", "POST_PLAYBACK_GUARD_MS", "PLAYBACK_FRAME_MS"):
        monkeypatch.delenv(key, raising=False)


def test_defaults_match_telephony_timing():
    settings = Settings(_env_file=None)
    assert settings.silence_threshold_ms == 800
    assert settings.playback_frame_bytes == 320
    assert settings.playback_frame_ms == 20
    assert settings.history_max_turns == 20
    assert settings.inbound_codec == "s16le"
    assert settings.step_timeout_seconds is None
    assert settings.stream_path == "/voicebot"


def test_in_codec_alias_is_honoured(monkeypatch):
    monkeypatch.setenv("IN_CODEC", "mulaw")
    assert Settings(_env_file=None).inbound_codec == "mulaw"


def test_llm_key_falls_back_to_openai_key():
    settings = Settings(_env_file=None, openai_api_key="sk-test")
    assert settings.effective_llm_api_key == "sk-test"


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, inbound_codec="opus")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, silence_threshold_ms=10)


def test_stream_path_gets_leading_slash():
    assert Settings(_env_file=None, stream_path="media").stream_path == "/media"
