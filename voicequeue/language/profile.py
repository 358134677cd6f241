"""
LanguageProfile - bundles the language-specific rules for chunking.

Each profile provides:
- Sentence terminal marks used to split input text
- A short sample sentence for voice previews
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageProfile:
    """Immutable set of language-specific rules."""

    code: str
    name: str

    # Sentence splitting
    sentence_terminals: tuple[str, ...] = ()

    # Voice preview
    preview_text: str = ""

    def build_terminal_pattern(self) -> re.Pattern:
        """Pattern matching one terminal mark."""
        alt = "|".join(re.escape(t) for t in self.sentence_terminals)
        return re.compile(f"({alt})")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_PROFILES: dict[str, LanguageProfile] = {}


def register_profile(profile: LanguageProfile) -> None:
    _PROFILES[profile.code] = profile


def _load_builtin() -> None:
    import voicequeue.language.bn  # noqa: F401
    import voicequeue.language.en  # noqa: F401


def get_profile(code: str = "bn") -> LanguageProfile:
    """Look up a language profile by ISO code. Defaults to Bengali."""
    if code not in _PROFILES:
        _load_builtin()
    if code not in _PROFILES:
        raise ValueError(
            f"Unsupported language: {code!r}. "
            f"Available: {', '.join(sorted(_PROFILES)) or 'none'}"
        )
    return _PROFILES[code]


def available_profiles() -> list[str]:
    """Return codes of all registered language profiles."""
    _load_builtin()
    return sorted(_PROFILES.keys())
