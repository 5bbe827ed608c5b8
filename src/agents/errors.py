"""Domain-specific exceptions for call handling.

These exceptions are safe to import from API layers without triggering SDK imports.
"""

from __future__ import annotations


class CallPipelineError(Exception):
    """A recoverable failure scoped to one transcribe/reply/synthesize cycle."""

    default_detail: str = "Call pipeline error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConversionError(CallPipelineError):
    default_detail = "Audio conversion failed."


class RecognitionError(CallPipelineError):
    default_detail = "Speech recognition failed."


class GenerationError(CallPipelineError):
    default_detail = "Reply generation failed."


class SynthesisError(CallPipelineError):
    default_detail = "Speech synthesis failed."


class TransportError(CallPipelineError):
    default_detail = "Sending media to the caller failed."


class ConfigurationError(Exception):
    """Required credentials or settings are missing; raised before any call is attempted."""


class InvalidTransitionError(Exception):
    """A call session was asked to move between states that are not connected."""

    def __init__(self, current: object, target: object) -> None:
        super().__init__(f"Invalid call state transition {current} -> {target}")
        self.current = current
        self.target = target
