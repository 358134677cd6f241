"""
Synthesis protocol - the one seam between the queue and a TTS provider.

Lets the scheduler be tested without network access or SDK credentials.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from voicequeue.models import SpeakingRate


@runtime_checkable
class SynthesisClient(Protocol):
    """Interface for converting one chunk of text into a WAV container."""

    async def synthesize(
        self,
        text: str,
        voice: str,
        style_instruction: str = "",
        rate: SpeakingRate = SpeakingRate.NORMAL,
        credential: Optional[str] = None,
    ) -> bytes: ...
