"""
Synthesis error taxonomy and provider error-message normalization.
"""

from __future__ import annotations

import json
import re


class SynthesisError(RuntimeError):
    """A single synthesis attempt failed."""


class CredentialMissing(SynthesisError):
    """No explicit credential and no ambient default."""

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message
            or "API Key not found. Add keys with 'voicequeue keys add' "
               "or set the GEMINI_API_KEY environment variable."
        )


class RemoteRejected(SynthesisError):
    """The provider returned an error envelope or the transport failed."""


class EmptyResponse(SynthesisError):
    """The provider answered without an audio payload."""

    def __init__(self, message: str = "") -> None:
        super().__init__(
            message or "No audio data received. The model might have blocked the request."
        )


_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def normalize_error_message(raw: object) -> str:
    """
    Turn a provider error into user-presentable text.

    When the raw message embeds a JSON object, prefer its
    `error.message` (plus `error.code`) or a top-level `message`.
    Anything unparseable is returned as-is.
    """
    if not isinstance(raw, str):
        return str(raw) if raw is not None else "Unknown API Error"
    if "{" not in raw or "}" not in raw:
        return raw

    match = _JSON_OBJECT.search(raw)
    if not match:
        return raw
    try:
        payload = json.loads(match.group(0))
    except ValueError:
        return raw
    if not isinstance(payload, dict):
        return raw

    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        message = str(error["message"])
        if error.get("code"):
            message += f" (Code: {error['code']})"
        return message
    if payload.get("message"):
        return str(payload["message"])
    return raw


def describe_exception(error: BaseException) -> str:
    """Best message for any exception raised during an attempt."""
    text = str(error)
    if not text:
        return type(error).__name__
    return normalize_error_message(text)
