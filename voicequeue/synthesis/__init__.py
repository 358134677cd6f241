"""
Synthesis module for voicequeue.

Wraps the remote TTS provider behind a small protocol so the queue
engine never touches the SDK directly.
"""

from voicequeue.synthesis.errors import (
    SynthesisError,
    CredentialMissing,
    RemoteRejected,
    EmptyResponse,
    normalize_error_message,
)
from voicequeue.synthesis.protocols import SynthesisClient

__all__ = [
    "SynthesisClient",
    "SynthesisError",
    "CredentialMissing",
    "RemoteRejected",
    "EmptyResponse",
    "normalize_error_message",
]
