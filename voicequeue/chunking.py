"""
Text chunking for voicequeue.

Splits long text into sentence-aligned units of bounded length.
The length budget is soft: a sentence is never cut, so one sentence
longer than the budget becomes its own oversized unit.
"""

from typing import Optional, Sequence

from voicequeue.language.profile import LanguageProfile, get_profile

DEFAULT_MAX_CHUNK_LENGTH = 1000


def _resolve_terminals(
    terminals: Optional[Sequence[str]],
    profile: Optional[LanguageProfile],
) -> LanguageProfile:
    if terminals is not None:
        return LanguageProfile(code="custom", name="Custom", sentence_terminals=tuple(terminals))
    if profile is None:
        profile = get_profile("bn")
    return profile


def split_sentences(
    text: str,
    terminals: Optional[Sequence[str]] = None,
    *,
    profile: Optional[LanguageProfile] = None,
) -> list[str]:
    """
    Split text after each terminal mark.

    The mark stays attached to the sentence it ends. Sentences are
    trimmed and empty ones dropped.
    """
    profile = _resolve_terminals(terminals, profile)
    if not profile.sentence_terminals:
        stripped = text.strip()
        return [stripped] if stripped else []

    pieces = profile.build_terminal_pattern().split(text)

    # split() with a capture group alternates text, mark, text, mark, ...
    sentences = []
    for i in range(0, len(pieces), 2):
        sentence = pieces[i]
        if i + 1 < len(pieces):
            sentence += pieces[i + 1]
        sentence = sentence.strip()
        if sentence:
            sentences.append(sentence)
    return sentences


def chunk_text(
    text: str,
    max_length: int = DEFAULT_MAX_CHUNK_LENGTH,
    terminals: Optional[Sequence[str]] = None,
    *,
    profile: Optional[LanguageProfile] = None,
) -> list[str]:
    """
    Group sentences into chunks of at most `max_length` characters.

    Args:
        text: Input text
        max_length: Soft character budget per chunk
        terminals: Sentence terminal marks (overrides `profile`)
        profile: Language profile supplying terminal marks (default Bengali)

    Returns:
        Ordered list of non-empty chunks
    """
    if max_length < 1:
        raise ValueError(f"max_length must be positive, got {max_length}")

    chunks = []
    current = ""

    for sentence in split_sentences(text, terminals, profile=profile):
        if len(current) + len(sentence) < max_length:
            current = f"{current} {sentence}" if current else sentence
        else:
            if current:
                chunks.append(current)
            current = sentence

    if current:
        chunks.append(current)

    return chunks
