"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AudioCodec = Literal["s16le", "mulaw", "alaw"]


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO")

    # Transport
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    stream_path: str = Field(default="/voicebot", description="WebSocket path for media streams.")
    service_banner: str = Field(default="Voice bridge OK", description="Body of the liveness route.")

    # Speech recognition
    openai_api_key: str | None = Field(default=None)
    stt_model: str = Field(default="whisper-1")

    # LLM connectivity
    llm_provider: Literal["openai", "self_hosted"] = Field(default="openai")
    llm_endpoint: str | None = Field(
        default=None, description="Base URL of an OpenAI-compatible inference server."
    )
    llm_api_key: str | None = Field(
        default=None, description="Falls back to OPENAI_API_KEY when unset."
    )
    llm_model: str = Field(default="gpt-4o-mini")
    llm_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=120, ge=1)

    # Text to speech (ElevenLabs)
    eleven_api_key: str | None = Field(default=None)
    eleven_voice_id: str | None = Field(default=None)
    eleven_model_id: str = Field(default="eleven_turbo_v2_5")
    eleven_stability: float = Field(default=0.5, ge=0.0, le=1.0)
    eleven_similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)

    # Wire audio
    inbound_codec: AudioCodec = Field(
        default="s16le",
        validation_alias=AliasChoices("inbound_codec", "in_codec"),
        description="Encoding of inbound caller frames (8 kHz mono).",
    )
    outbound_codec: AudioCodec = Field(default="s16le")

    # Turn taking
    silence_threshold_ms: int = Field(default=800, ge=50)
    playback_frame_bytes: int = Field(default=320, ge=1)
    playback_frame_ms: int = Field(default=20, ge=0)
    post_playback_guard_ms: int = Field(default=450, ge=0)
    history_max_turns: int = Field(default=20, ge=2)
    step_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Optional per-step timeout for external calls; unset means wait indefinitely.",
    )

    greeting_text: str = Field(default="Hello! Thanks for calling. Hindi or English?")

    @field_validator("stream_path")
    @classmethod
    def ensure_leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @property
    def effective_llm_api_key(self) -> str | None:
        return self.llm_api_key or self.openai_api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
