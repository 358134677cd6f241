"""
Bengali language profile for voicequeue.
"""

from voicequeue.language.profile import LanguageProfile, register_profile

BENGALI = LanguageProfile(
    code="bn",
    name="Bengali",

    sentence_terminals=(
        "।",   # । danda
        "?",
        "!",
    ),

    preview_text="হ্যালো, আমি আপনার নির্বাচিত ভয়েস।",
)

register_profile(BENGALI)
