"""
Language profiles for voicequeue.

Each profile bundles the language-specific rules that drive
sentence splitting and voice previews.
"""

from voicequeue.language.profile import LanguageProfile, get_profile

__all__ = ["LanguageProfile", "get_profile"]
