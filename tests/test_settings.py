"""Tests for the credential settings file."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from voicequeue.settings import (
    Settings,
    ambient_credential,
    get_settings_path,
    load_settings,
    mask_key,
    parse_keys,
    save_settings,
)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("VOICEQUEUE_HOME", str(tmp_path / "home"))
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestParseKeys:
    def test_splits_and_trims(self):
        assert parse_keys("  a \n\n b\n   \nc") == ("a", "b", "c")

    def test_iterable(self):
        assert parse_keys(["x", " ", " y "]) == ("x", "y")


class TestMaskKey:
    def test_long(self):
        assert mask_key("AIzaSyABCDEFGH1234") == "AIza...1234"

    def test_short(self):
        assert mask_key("abc") == "***"


class TestLoadSave:
    def test_missing_file_gives_defaults(self):
        assert load_settings().api_keys == ()

    def test_round_trip(self):
        path = save_settings(Settings(api_keys=("k1", "k2")))
        assert path == get_settings_path()
        assert load_settings().credential_pool == ("k1", "k2")

    def test_file_format(self):
        path = save_settings(Settings(api_keys=("k1",)))
        assert json.loads(path.read_text(encoding="utf-8")) == {"version": 1, "api_keys": ["k1"]}

    def test_migrates_single_key(self):
        path = get_settings_path()
        path.parent.mkdir(parents=True)
        path.write_text("legacy-key\n", encoding="utf-8")
        assert load_settings().api_keys == ("legacy-key",)

    def test_migrates_key_list(self):
        path = get_settings_path()
        path.parent.mkdir(parents=True)
        path.write_text('["a", "b"]', encoding="utf-8")
        assert load_settings().api_keys == ("a", "b")

    def test_corrupt_json_gives_defaults(self):
        path = get_settings_path()
        path.parent.mkdir(parents=True)
        path.write_text('{"api_keys": [', encoding="utf-8")
        assert load_settings().api_keys == ()

    def test_newer_version_ignored(self):
        path = get_settings_path()
        path.parent.mkdir(parents=True)
        path.write_text('{"version": 99, "api_keys": ["a"]}', encoding="utf-8")
        assert load_settings().api_keys == ()


class TestAmbientCredential:
    def test_none(self):
        assert ambient_credential() is None

    def test_order(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "third")
        monkeypatch.setenv("GOOGLE_API_KEY", "second")
        assert ambient_credential() == "second"
        monkeypatch.setenv("GEMINI_API_KEY", "first")
        assert ambient_credential() == "first"
