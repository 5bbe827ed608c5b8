"""Vectorized G.711 companding (mu-law and A-law) for 16-bit linear PCM."""

from __future__ import annotations

import numpy as np

_ULAW_BIAS = 0x84
_ULAW_CLIP = 32635
_ALAW_SEG_END = np.array([0x1F, 0x3F, 0x7F, 0xFF, 0x1FF, 0x3FF, 0x7FF, 0xFFF], dtype=np.int32)


def ulaw_decode(ulaw_bytes: bytes) -> np.ndarray:
    """Decode G.711 mu-law bytes to PCM16 int16 array."""

    data = np.frombuffer(ulaw_bytes, dtype=np.uint8)

    mu = np.bitwise_not(data).astype(np.int32)
    sign = mu & 0x80
    exponent = (mu & 0x70) >> 4
    mantissa = mu & 0x0F

    magnitude = ((mantissa << 3) + _ULAW_BIAS) << exponent
    pcm = np.where(sign != 0, _ULAW_BIAS - magnitude, magnitude - _ULAW_BIAS)
    return pcm.astype(np.int16)


def ulaw_encode(pcm16: np.ndarray) -> bytes:
    """Encode PCM16 int16 array to G.711 mu-law bytes."""

    if pcm16.size == 0:
        return b""

    x = pcm16.astype(np.int32)
    sign = (x < 0).astype(np.int32)
    x = np.minimum(np.abs(x), _ULAW_CLIP) + _ULAW_BIAS

    exponent = np.zeros_like(x)
    for exp in range(8):
        exponent = np.where(x >= (1 << (exp + 7)), exp, exponent)

    mantissa = (x >> (exponent + 3)) & 0x0F

    ulaw = np.bitwise_not((sign << 7) | (exponent << 4) | mantissa).astype(np.uint8)
    return ulaw.tobytes()


def alaw_decode(alaw_bytes: bytes) -> np.ndarray:
    """Decode G.711 A-law bytes to PCM16 int16 array."""

    a = np.frombuffer(alaw_bytes, dtype=np.uint8).astype(np.int32) ^ 0x55
    seg = (a & 0x70) >> 4
    t = (a & 0x0F) << 4

    t = np.where(seg == 0, t + 8, t + 0x108)
    t = np.where(seg > 1, t << np.maximum(seg - 1, 0), t)
    pcm = np.where((a & 0x80) != 0, t, -t)
    return pcm.astype(np.int16)


def alaw_encode(pcm16: np.ndarray) -> bytes:
    """Encode PCM16 int16 array to G.711 A-law bytes."""

    if pcm16.size == 0:
        return b""

    val = pcm16.astype(np.int32) >> 3
    positive = val >= 0
    mask = np.where(positive, 0xD5, 0x55)
    val = np.where(positive, val, -val - 1)

    seg = np.searchsorted(_ALAW_SEG_END, val, side="left")
    shift = np.where(seg < 2, 1, seg)
    aval = (np.minimum(seg, 7) << 4) | ((val >> shift) & 0x0F)
    aval = np.where(seg >= 8, 0x7F, aval)
    return (aval ^ mask).astype(np.uint8).tobytes()
