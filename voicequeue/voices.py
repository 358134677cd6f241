"""
Voice catalogue - the provider's prebuilt voices and style presets.

Provides a single lookup point for voice validation, making it easy
to list and check voices without touching the network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger("voicequeue.voices")


@dataclass(frozen=True)
class Voice:
    name: str
    gender: str
    character: str

    @property
    def label(self) -> str:
        return f"{self.name} ({self.gender}, {self.character})"


VOICES: tuple[Voice, ...] = (
    Voice("Zephyr", "Female", "Bright"),
    Voice("Puck", "Male", "Upbeat"),
    Voice("Charon", "Male", "Informative"),
    Voice("Kore", "Female", "Firm"),
    Voice("Fenrir", "Male", "Excitable"),
    Voice("Leda", "Female", "Youthful"),
    Voice("Orus", "Male", "Firm"),
    Voice("Aoede", "Female", "Breezy"),
    Voice("Callirrhoe", "Female", "Easy-going"),
    Voice("Autonoe", "Female", "Bright"),
    Voice("Enceladus", "Male", "Breathy"),
    Voice("Iapetus", "Male", "Clear"),
    Voice("Umbriel", "Male", "Easy-going"),
    Voice("Algieba", "Male", "Smooth"),
    Voice("Despina", "Female", "Smooth"),
    Voice("Erinome", "Female", "Clear"),
    Voice("Algenib", "Male", "Gravelly"),
    Voice("Rasalgethi", "Female", "Informative"),
    Voice("Laomedeia", "Female", "Upbeat"),
    Voice("Achernar", "Male", "Soft"),
    Voice("Alnilam", "Male", "Firm"),
    Voice("Schedar", "Male", "Even"),
    Voice("Gacrux", "Male", "Mature"),
    Voice("Pulcherrima", "Female", "Forward"),
    Voice("Achird", "Female", "Friendly"),
    Voice("Zubenelgenubi", "Male", "Casual"),
    Voice("Vindemiatrix", "Female", "Gentle"),
    Voice("Sadachbia", "Female", "Lively"),
    Voice("Sadaltager", "Female", "Knowledgeable"),
    Voice("Sulafat", "Female", "Warm"),
)

DEFAULT_VOICE = VOICES[0].name

STYLE_PRESETS: dict[str, str] = {
    "Romantic": "Say it romantically.",
    "Sylheti": "Speak with a Sylheti accent.",
    "News Anchor": "Speak like a professional news anchor.",
    "Storyteller": "Speak like an engaging storyteller.",
    "Sad": "Speak in a sad tone.",
    "Excited": "Speak with excitement.",
}


class VoiceNotFoundError(Exception):
    """Raised when a voice name is not in the catalogue."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Voice not found: {name}\n"
            f"  {len(VOICES)} voices available. "
            f"Run 'voicequeue voices' to list them."
        )


def find_voice(name: str) -> Optional[Voice]:
    """Case-insensitive lookup."""
    key = name.casefold().strip()
    for voice in VOICES:
        if voice.name.casefold() == key:
            return voice
    return None


def validate_voice(name: str) -> str:
    """
    Return the canonical spelling of a voice name.

    Raises:
        VoiceNotFoundError: Unknown voice.
    """
    voice = find_voice(name)
    if voice is None:
        raise VoiceNotFoundError(name)
    return voice.name


def list_voices(gender: Optional[str] = None, search: Optional[str] = None) -> list[Voice]:
    """Filter the catalogue by gender and/or free-text search."""
    voices = list(VOICES)
    if gender:
        voices = [v for v in voices if v.gender.casefold() == gender.casefold()]
    if search:
        needle = search.casefold()
        voices = [v for v in voices if needle in v.label.casefold()]
    return voices


def resolve_style(style: str) -> str:
    """Expand a preset name into its instruction; other text passes through."""
    for label, text in STYLE_PRESETS.items():
        if style.casefold().strip() == label.casefold():
            return text
    return style
