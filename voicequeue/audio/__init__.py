"""
Audio module for voicequeue.

Handles:
- WAV container encode/decode
- Per-unit gain
- Unit audio storage
- Merged export
"""

from voicequeue.audio.wav import encode, decode, SAMPLE_RATE, HEADER_SIZE, MIME_TYPE
from voicequeue.audio.volume import scale
from voicequeue.audio.storage import ContainerStore, MemoryContainerStore, DiskContainerStore
from voicequeue.audio.merge import merge, export, MergeError, NothingToExport, NoValidAudio

__all__ = [
    "encode",
    "decode",
    "SAMPLE_RATE",
    "HEADER_SIZE",
    "MIME_TYPE",
    "scale",
    "ContainerStore",
    "MemoryContainerStore",
    "DiskContainerStore",
    "merge",
    "export",
    "MergeError",
    "NothingToExport",
    "NoValidAudio",
]
