"""Conversion between telephony wire audio, recognizer input and synthesizer output."""

from __future__ import annotations

import asyncio
import io
import logging

import numpy as np
import soundfile as sf

from agents.errors import ConversionError
from config.settings import AudioCodec
from telephony.g711 import alaw_decode, alaw_encode, ulaw_decode, ulaw_encode

LOGGER = logging.getLogger(__name__)

TELEPHONY_SAMPLE_RATE = 8000
RECOGNIZER_SAMPLE_RATE = 16000


def pcm16_resample(pcm: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    if src_rate == dst_rate:
        return pcm
    if pcm.size == 0:
        return pcm.astype(np.int16)

    x_old = np.arange(pcm.size, dtype=np.float32)
    x_new = np.linspace(0, pcm.size - 1, int(pcm.size * dst_rate / src_rate), dtype=np.float32)

    y_old = pcm.astype(np.float32)
    y_new = np.interp(x_new, x_old, y_old)

    return np.clip(y_new, -32768, 32767).astype(np.int16)


def pcm16_to_wav_bytes(pcm: np.ndarray, sample_rate: int) -> bytes:
    buffer = io.BytesIO()
    sf.write(buffer, pcm.astype(np.int16), sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def decode_wire(data: bytes, codec: AudioCodec) -> np.ndarray:
    """Decode wire bytes in ``codec`` to a PCM16 int16 array."""

    if codec == "mulaw":
        return ulaw_decode(data)
    if codec == "alaw":
        return alaw_decode(data)
    if codec == "s16le":
        if len(data) % 2:
            LOGGER.debug("Dropping trailing odd byte from %d-byte s16le buffer", len(data))
            data = data[:-1]
        return np.frombuffer(data, dtype="<i2").astype(np.int16)
    raise ConversionError(f"Unsupported wire codec: {codec}")


def encode_wire(pcm: np.ndarray, codec: AudioCodec) -> bytes:
    """Encode a PCM16 int16 array into wire bytes in ``codec``."""

    if codec == "mulaw":
        return ulaw_encode(pcm)
    if codec == "alaw":
        return alaw_encode(pcm)
    if codec == "s16le":
        return pcm.astype("<i2").tobytes()
    raise ConversionError(f"Unsupported wire codec: {codec}")


class AudioTranscoder:
    """Turns caller audio into recognizer WAV and synthesized audio into wire frames.

    The numeric work runs in a worker thread so the event loop keeps serving
    other calls.
    """

    def __init__(self, outbound_codec: AudioCodec = "s16le") -> None:
        self._outbound_codec = outbound_codec

    async def to_recognizer_format(self, data: bytes, source_format: AudioCodec) -> bytes:
        return await asyncio.to_thread(self._wire_to_wav, data, source_format)

    async def to_wire_format(self, data: bytes) -> bytes:
        return await asyncio.to_thread(self._encoded_to_wire, data)

    @staticmethod
    def _wire_to_wav(data: bytes, source_format: AudioCodec) -> bytes:
        if not data:
            raise ConversionError("No inbound audio to convert.")
        pcm8k = decode_wire(data, source_format)
        if not pcm8k.size:
            raise ConversionError("Inbound audio shorter than one sample.")
        pcm16k = pcm16_resample(pcm8k, TELEPHONY_SAMPLE_RATE, RECOGNIZER_SAMPLE_RATE)
        return pcm16_to_wav_bytes(pcm16k, RECOGNIZER_SAMPLE_RATE)

    def _encoded_to_wire(self, data: bytes) -> bytes:
        if not data:
            raise ConversionError("No synthesized audio to convert.")
        try:
            with sf.SoundFile(io.BytesIO(data), mode="r") as audio_file:
                audio = audio_file.read(dtype="float32")
                src_rate = int(audio_file.samplerate)
        except (sf.SoundFileError, RuntimeError, TypeError) as exc:
            raise ConversionError(f"Could not decode synthesized audio: {exc}") from exc

        if isinstance(audio, np.ndarray) and audio.ndim > 1:
            audio = np.mean(audio, axis=1)

        pcm = np.clip(audio * 32767.0, -32768, 32767).astype(np.int16)
        pcm8k = pcm16_resample(pcm, src_rate, TELEPHONY_SAMPLE_RATE)
        return encode_wire(pcm8k, self._outbound_codec)
