"""Test fakes for voicequeue queue and adapter tests."""

from tests.fakes.fake_synth import FakeSynthesisClient, RecordingSleep, pcm_for
from tests.fakes.fake_genai import FakeClientFactory, make_audio_response

__all__ = [
    "FakeSynthesisClient",
    "RecordingSleep",
    "pcm_for",
    "FakeClientFactory",
    "make_audio_response",
]
