"""Tests for merge assembly and export."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from voicequeue.audio import volume, wav
from voicequeue.audio.merge import (
    NoValidAudio,
    NothingToExport,
    export,
    merge,
    resolve_export_path,
)
from voicequeue.audio.storage import MemoryContainerStore
from voicequeue.models import Job, JobConfig, Unit


def _pcm(*samples: int) -> bytes:
    return np.array(samples, dtype="<i2").tobytes()


def _done_unit(store: MemoryContainerStore, text: str, payload: bytes, gain: float = 1.0) -> Unit:
    unit = Unit(text=text, gain=gain)
    ref = store.put(unit.id, wav.encode(payload))
    return unit.completed(ref)


class TestMerge:
    def test_order_and_gain(self):
        store = MemoryContainerStore()
        a = _done_unit(store, "a", _pcm(100, 200))
        b = _done_unit(store, "b", _pcm(1000, -1000), gain=0.5)

        merged = merge([a, b], store)

        assert wav.decode(merged) == _pcm(100, 200) + volume.scale(_pcm(1000, -1000), 0.5)
        assert wav.read_header(merged)["data_size"] == 8

    def test_follows_given_order_not_completion(self):
        store = MemoryContainerStore()
        first = _done_unit(store, "first", _pcm(1))
        second = _done_unit(store, "second", _pcm(2))
        assert wav.decode(merge([second, first], store)) == _pcm(2, 1)

    def test_skips_unfinished_units(self):
        store = MemoryContainerStore()
        done = _done_unit(store, "done", _pcm(7))
        pending = Unit(text="pending")
        failed = Unit(text="failed").failed("boom")

        assert wav.decode(merge([pending, done, failed], store)) == _pcm(7)

    def test_nothing_done_raises(self):
        with pytest.raises(NothingToExport, match="No audio generated yet"):
            merge([Unit(text="a")], MemoryContainerStore())

    def test_all_empty_payloads_raise(self):
        store = MemoryContainerStore()
        empty = _done_unit(store, "a", b"")
        with pytest.raises(NoValidAudio, match="No valid audio data"):
            merge([empty], store)

    def test_short_container_skipped(self):
        store = MemoryContainerStore()
        good = _done_unit(store, "good", _pcm(5))
        bad = Unit(text="bad").completed(store.put("bad", b"RIFF"))

        assert wav.decode(merge([bad, good], store)) == _pcm(5)

    def test_missing_container_skipped(self):
        store = MemoryContainerStore()
        good = _done_unit(store, "good", _pcm(5))
        gone = Unit(text="gone").completed("nowhere")

        assert wav.decode(merge([gone, good], store)) == _pcm(5)

    def test_sample_rate(self):
        store = MemoryContainerStore()
        unit = _done_unit(store, "a", _pcm(1))
        assert wav.read_header(merge([unit], store, 16000))["sample_rate"] == 16000


class TestExport:
    def _job(self, store: MemoryContainerStore, **config) -> Job:
        return Job(
            units=(_done_unit(store, "a", _pcm(1, 2)), _done_unit(store, "b", _pcm(3))),
            config=JobConfig(**config),
        )

    def test_writes_file(self, tmp_path: Path):
        store = MemoryContainerStore()
        result = export(self._job(store), store, tmp_path / "out.wav")

        assert result.output_path.read_bytes()[:4] == b"RIFF"
        assert result.size_bytes == wav.HEADER_SIZE + 6
        assert result.unit_count == 2

    def test_nothing_written_on_failure(self, tmp_path: Path):
        target = tmp_path / "out.wav"
        with pytest.raises(NothingToExport):
            export(Job(units=(Unit(text="a"),)), MemoryContainerStore(), target)
        assert not target.exists()

    def test_default_name(self):
        assert resolve_export_path(Job()) == Path("narration.wav")

    def test_configured_name_gets_suffix(self):
        job = Job(config=JobConfig(export_filename="chapter one"))
        assert resolve_export_path(job) == Path("chapter one.wav")

    def test_explicit_path_kept(self, tmp_path: Path):
        assert resolve_export_path(Job(), tmp_path / "x.WAV") == tmp_path / "x.WAV"
