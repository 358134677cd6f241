"""
Container codec: raw 16-bit mono PCM <-> RIFF/WAVE bytes.

Only the fixed 44-byte header written by encode() is supported;
decode() does not parse arbitrary third-party WAV files.
"""

from __future__ import annotations

import struct

SAMPLE_RATE = 24000
HEADER_SIZE = 44
MIME_TYPE = "audio/wav"

CHANNELS = 1
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = CHANNELS * BITS_PER_SAMPLE // 8

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def encode(samples: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    """
    Wrap raw PCM samples in a WAV header.

    Args:
        samples: Little-endian signed 16-bit mono PCM
        sample_rate: Samples per second

    Returns:
        Complete WAV file bytes
    """
    data_size = len(samples)
    header = _HEADER.pack(
        b"RIFF",
        36 + data_size,                 # file size - 8
        b"WAVE",
        b"fmt ",
        16,                             # fmt chunk size
        1,                              # PCM format
        CHANNELS,
        sample_rate,
        sample_rate * BLOCK_ALIGN,      # byte rate
        BLOCK_ALIGN,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )
    return header + bytes(samples)


def decode(container: bytes) -> bytes:
    """Strip the fixed header and return the raw samples."""
    return bytes(container[HEADER_SIZE:])


def read_header(container: bytes) -> dict:
    """Unpack the header fields of a container produced by encode()."""
    if len(container) < HEADER_SIZE:
        raise ValueError(f"Container too short: {len(container)} bytes < {HEADER_SIZE}")
    (riff, riff_size, wave, fmt_id, fmt_size, audio_format, channels,
     sample_rate, byte_rate, block_align, bits, data_id, data_size) = _HEADER.unpack_from(container)
    return {
        "riff": riff,
        "riff_size": riff_size,
        "wave": wave,
        "fmt": fmt_id,
        "fmt_size": fmt_size,
        "audio_format": audio_format,
        "channels": channels,
        "sample_rate": sample_rate,
        "byte_rate": byte_rate,
        "block_align": block_align,
        "bits_per_sample": bits,
        "data": data_id,
        "data_size": data_size,
    }


def duration_seconds(container: bytes, sample_rate: int = SAMPLE_RATE) -> float:
    """Playback length of a container's payload."""
    payload = max(0, len(container) - HEADER_SIZE)
    return payload / (sample_rate * BLOCK_ALIGN)
