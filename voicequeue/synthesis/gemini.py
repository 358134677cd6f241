"""
Gemini TTS adapter.

One call per attempt: the prompt (with any style and pace instruction
embedded in the text itself) goes to the provider, the raw PCM reply is
wrapped into a WAV container. Retrying is the scheduler's job.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Callable, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from voicequeue.audio import wav
from voicequeue.models import SpeakingRate
from voicequeue.settings import ambient_credential
from voicequeue.synthesis.errors import (
    CredentialMissing,
    EmptyResponse,
    RemoteRejected,
    describe_exception,
)

logger = logging.getLogger("voicequeue.synthesis")

DEFAULT_MODEL = "gemini-2.5-flash-preview-tts"

PACE_DIRECTIVES = {
    SpeakingRate.SLOW: "Speak slowly.",
    SpeakingRate.FAST: "Speak at a fast pace.",
    SpeakingRate.VERY_FAST: "Speak very quickly.",
}


def build_prompt(
    text: str,
    style_instruction: str = "",
    rate: SpeakingRate = SpeakingRate.NORMAL,
) -> str:
    """
    Build the content sent to the model.

    The provider follows delivery instructions more reliably when they
    are part of the content than through a system instruction, so
    style and pace are prepended to the text.
    """
    instructions = (style_instruction or "").strip()

    pace = PACE_DIRECTIVES.get(SpeakingRate.parse(rate))
    if pace:
        instructions = f"{instructions} {pace}" if instructions else pace

    if instructions:
        return f"{instructions}\n\n{text}"
    return text


def build_generation_config(voice: str) -> types.GenerateContentConfig:
    """Single-speaker, audio-only response config."""
    return types.GenerateContentConfig(
        response_modalities=["AUDIO"],
        speech_config=types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
            ),
        ),
    )


def extract_audio(response: Any) -> bytes:
    """
    Pull raw PCM out of a generate_content response.

    Raises:
        EmptyResponse: No inline audio in the first candidate.
    """
    try:
        part = response.candidates[0].content.parts[0]
    except (AttributeError, IndexError, TypeError):
        part = None

    inline = getattr(part, "inline_data", None)
    data = getattr(inline, "data", None)
    if not data:
        raise EmptyResponse()

    # The SDK decodes base64 for us; raw REST payloads arrive as text.
    if isinstance(data, str):
        data = base64.b64decode(data)
    return bytes(data)


def describe_api_error(error: genai_errors.APIError) -> str:
    """Readable text for an SDK error envelope."""
    message = getattr(error, "message", None)
    if not message:
        return describe_exception(error)
    code = getattr(error, "code", None)
    if code:
        return f"{message} (Code: {code})"
    return str(message)


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


class GeminiSynthesisClient:
    """
    SynthesisClient backed by google-genai.

    A fresh SDK client is built per call so each request uses the
    credential the scheduler picked for it.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        *,
        default_credential: Optional[str] = None,
        sample_rate: int = wav.SAMPLE_RATE,
        client_factory: Optional[Callable[[str], Any]] = None,
    ) -> None:
        self.model = model
        self.default_credential = default_credential
        self.sample_rate = sample_rate
        self._client_factory = client_factory or _default_client_factory

    def resolve_credential(self, credential: Optional[str] = None) -> str:
        """Explicit credential, else the ambient default."""
        api_key = credential or self.default_credential or ambient_credential()
        if not api_key:
            raise CredentialMissing()
        return api_key

    async def synthesize(
        self,
        text: str,
        voice: str,
        style_instruction: str = "",
        rate: SpeakingRate = SpeakingRate.NORMAL,
        credential: Optional[str] = None,
    ) -> bytes:
        api_key = self.resolve_credential(credential)
        prompt = build_prompt(text, style_instruction, rate)
        client = self._client_factory(api_key)

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Content(role="user", parts=[types.Part.from_text(text=prompt)]),
                ],
                config=build_generation_config(voice),
            )
        except genai_errors.APIError as e:
            raise RemoteRejected(describe_api_error(e)) from e
        except Exception as e:
            raise RemoteRejected(describe_exception(e)) from e

        audio = extract_audio(response)
        logger.debug(
            f"SYNTH_RESPONSE: voice={voice} chars={len(text)} pcm_bytes={len(audio)}"
        )
        return wav.encode(audio, self.sample_rate)
