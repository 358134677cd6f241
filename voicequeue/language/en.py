"""
English language profile for voicequeue.
"""

from voicequeue.language.profile import LanguageProfile, register_profile

ENGLISH = LanguageProfile(
    code="en",
    name="English",

    sentence_terminals=(".", "?", "!"),

    preview_text="Hello, I am your selected voice.",
)

register_profile(ENGLISH)
