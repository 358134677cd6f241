"""
Linear gain for 16-bit PCM with saturation.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger("voicequeue.volume")

INT16_MIN = -32768
INT16_MAX = 32767

# Gains this close to unity leave the audio untouched.
UNITY_TOLERANCE = 0.01


def is_unity(gain: float) -> bool:
    return abs(gain - 1.0) <= UNITY_TOLERANCE


def scale(raw: bytes, gain: float) -> bytes:
    """
    Multiply every sample by `gain`, rounding and clamping to int16.

    Args:
        raw: Little-endian signed 16-bit samples. A trailing odd byte
            is passed through unscaled.
        gain: Linear multiplier

    Returns:
        Scaled samples as a new bytes object (or `raw` itself at unity gain)
    """
    if is_unity(gain):
        return raw
    tail = b""
    if len(raw) % 2:
        logger.warning(f"SCALE_ODD_LENGTH: bytes={len(raw)} trailing byte left unscaled")
        raw, tail = raw[:-1], raw[-1:]
    samples = np.frombuffer(raw, dtype="<i2")
    scaled = np.rint(samples.astype(np.float64) * gain)
    np.clip(scaled, INT16_MIN, INT16_MAX, out=scaled)
    return scaled.astype("<i2").tobytes() + tail
