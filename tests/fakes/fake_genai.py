"""
Fake google-genai client objects.

Mimic the attribute shape GeminiSynthesisClient reads:
client.aio.models.generate_content(...) -> response.candidates[0].content.parts[0].inline_data.data
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Optional


def make_audio_response(data: Any) -> SimpleNamespace:
    """Response carrying one inline audio part."""
    inline = SimpleNamespace(data=data, mime_type="audio/L16;codec=pcm;rate=24000")
    part = SimpleNamespace(inline_data=inline, text=None)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


def make_text_response(text: str = "I can't say that.") -> SimpleNamespace:
    """Response with a text part and no audio."""
    part = SimpleNamespace(inline_data=None, text=text)
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


class FakeModels:
    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict] = []

    async def generate_content(self, *, model, contents, config):
        self.requests.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


class FakeGenaiClient:
    def __init__(self, models: FakeModels) -> None:
        self.aio = SimpleNamespace(models=models)


class FakeClientFactory:
    """client_factory stand-in recording the api keys it was given."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.models = FakeModels(response, error)
        self.api_keys: list[str] = []

    def __call__(self, api_key: str) -> FakeGenaiClient:
        self.api_keys.append(api_key)
        return FakeGenaiClient(self.models)
