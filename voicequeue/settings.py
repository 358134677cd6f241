"""
User settings - the credential pool lives here.

Settings are stored as JSON in `~/.voicequeue/settings.json`
(or `$VOICEQUEUE_HOME/settings.json`). Older installs kept either a
bare JSON list of keys or a single plain-text key; both are migrated
on load.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from voicequeue.audio.storage import write_atomic

logger = logging.getLogger("voicequeue.settings")

SETTINGS_VERSION = 1
SETTINGS_FILENAME = "settings.json"

# Checked in order when the credential pool is empty.
AMBIENT_CREDENTIAL_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


def ambient_credential() -> Optional[str]:
    """Default credential from the environment, if any."""
    for name in AMBIENT_CREDENTIAL_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def get_settings_dir() -> Path:
    home = os.environ.get("VOICEQUEUE_HOME")
    if home:
        return Path(home)
    return Path.home() / ".voicequeue"


def get_settings_path() -> Path:
    return get_settings_dir() / SETTINGS_FILENAME


def parse_keys(text: str | Iterable[str]) -> tuple[str, ...]:
    """Split newline-separated input into trimmed, non-empty keys."""
    lines = text.splitlines() if isinstance(text, str) else text
    return tuple(k.strip() for k in lines if k and k.strip())


def mask_key(key: str) -> str:
    """Display form of a credential."""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


@dataclass
class Settings:
    """
    Persisted user settings.

    Attributes:
        api_keys: Ordered credential pool; empty means use the ambient default
    """
    api_keys: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.api_keys = parse_keys(self.api_keys)

    @property
    def credential_pool(self) -> tuple[str, ...]:
        return self.api_keys

    def to_dict(self) -> dict:
        return {"version": SETTINGS_VERSION, "api_keys": list(self.api_keys)}

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        return cls(api_keys=tuple(data.get("api_keys", [])))


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings, migrating legacy formats. Missing file -> defaults."""
    path = Path(path) if path else get_settings_path()
    if not path.exists():
        return Settings()

    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return Settings()

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        if raw.startswith("[") or raw.startswith("{"):
            logger.warning(f"Corrupt settings at {path}; using defaults")
            return Settings()
        logger.info(f"SETTINGS_MIGRATE: path={path} format=single_key")
        return Settings(api_keys=(raw,))

    if isinstance(data, list):
        logger.info(f"SETTINGS_MIGRATE: path={path} format=key_list")
        return Settings(api_keys=tuple(str(k) for k in data))
    if isinstance(data, dict):
        version = data.get("version", SETTINGS_VERSION)
        if version > SETTINGS_VERSION:
            logger.warning(
                f"Settings version {version} > supported {SETTINGS_VERSION}; using defaults"
            )
            return Settings()
        return Settings.from_dict(data)

    logger.warning(f"Unrecognized settings at {path}; using defaults")
    return Settings()


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Atomically write settings."""
    path = Path(path) if path else get_settings_path()
    text = json.dumps(settings.to_dict(), indent=2, ensure_ascii=False)
    return write_atomic(path, text.encode("utf-8"))
