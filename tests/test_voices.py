"""Tests for the voice catalogue."""

import pytest

from voicequeue.voices import (
    DEFAULT_VOICE,
    STYLE_PRESETS,
    VOICES,
    VoiceNotFoundError,
    find_voice,
    list_voices,
    resolve_style,
    validate_voice,
)


class TestVoices:
    def test_catalogue(self):
        assert len(VOICES) == 30
        assert DEFAULT_VOICE == "Zephyr"
        assert len({v.name for v in VOICES}) == 30

    def test_find_is_case_insensitive(self):
        assert find_voice("kore").name == "Kore"
        assert find_voice("nobody") is None

    def test_validate(self):
        assert validate_voice(" PUCK") == "Puck"
        with pytest.raises(VoiceNotFoundError, match="Voice not found: Nobody"):
            validate_voice("Nobody")

    def test_filter_by_gender(self):
        voices = list_voices(gender="female")
        assert voices
        assert all(v.gender == "Female" for v in voices)

    def test_search(self):
        assert [v.name for v in list_voices(search="gravelly")] == ["Algenib"]

    def test_label(self):
        assert find_voice("Charon").label == "Charon (Male, Informative)"


class TestStyles:
    def test_preset_expands(self):
        assert resolve_style("news anchor") == STYLE_PRESETS["News Anchor"]

    def test_free_text_passes_through(self):
        assert resolve_style("Speak like a pirate.") == "Speak like a pirate."
