"""Tests for Unit, Job and JobConfig."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from voicequeue.models import (
    Job,
    JobConfig,
    SpeakingRate,
    Unit,
    UnitStatus,
    check_gain,
    new_id,
)
from voicequeue.progress import RunProgress


class TestUnit:
    def test_defaults(self):
        unit = Unit(text="hello")
        assert unit.status is UnitStatus.PENDING
        assert unit.gain == 1.0
        assert unit.result is None
        assert unit.error_message is None
        assert not unit.selected

    def test_ids_unique(self):
        assert Unit(text="a").id != Unit(text="a").id
        assert new_id() != new_id()

    def test_lifecycle(self):
        unit = Unit(text="a")
        flying = unit.dispatched()
        assert flying.status is UnitStatus.IN_FLIGHT
        done = flying.completed("ref")
        assert done.status is UnitStatus.DONE
        assert done.result == "ref"
        assert done.id == unit.id

    def test_failed_then_requeued_clears_error(self):
        failed = Unit(text="a").dispatched().failed("boom")
        assert failed.error_message == "boom"
        requeued = failed.requeued()
        assert requeued.status is UnitStatus.QUEUED
        assert requeued.error_message is None

    def test_done_requires_result(self):
        with pytest.raises(ValueError):
            Unit(text="a", status=UnitStatus.DONE)

    def test_failed_requires_error(self):
        with pytest.raises(ValueError):
            Unit(text="a", status=UnitStatus.FAILED)

    def test_pending_rejects_result(self):
        with pytest.raises(ValueError):
            Unit(text="a", result="ref")

    def test_empty_text_rejected(self):
        with pytest.raises(ValueError):
            Unit(text="")

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            Unit(text="a").gain = 2.0

    def test_round_trip(self):
        unit = Unit(text="a", gain=0.5, selected=True).dispatched().completed("r")
        assert Unit.from_dict(unit.to_dict()) == unit


class TestGain:
    @pytest.mark.parametrize("gain", [0.0, 1.0, 2.0])
    def test_bounds_accepted(self, gain):
        assert check_gain(gain) == gain

    @pytest.mark.parametrize("gain", [-0.1, 2.01])
    def test_out_of_range(self, gain):
        with pytest.raises(ValueError):
            check_gain(gain)

    def test_unit_validates_gain(self):
        with pytest.raises(ValueError):
            Unit(text="a", gain=3.0)


class TestSpeakingRate:
    @pytest.mark.parametrize("value,expected", [
        ("Slow", SpeakingRate.SLOW),
        ("Very Fast", SpeakingRate.VERY_FAST),
        ("very_fast", SpeakingRate.VERY_FAST),
        ("very-fast", SpeakingRate.VERY_FAST),
        (SpeakingRate.FAST, SpeakingRate.FAST),
    ])
    def test_parse(self, value, expected):
        assert SpeakingRate.parse(value) is expected

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown speaking rate"):
            SpeakingRate.parse("warp")

    @pytest.mark.parametrize("value", [None, 3, ["Slow"]])
    def test_non_string_is_value_error(self, value):
        with pytest.raises(ValueError, match="must be a string"):
            SpeakingRate.parse(value)


class TestJobConfig:
    def test_defaults(self):
        config = JobConfig()
        assert config.voice == "Zephyr"
        assert config.concurrency_limit == 2
        assert config.max_attempts == 3
        assert config.backoff_base_s == 1.0
        assert config.max_chunk_length == 1000
        assert config.sample_rate == 24000
        assert config.language_code == "bn"

    def test_rate_string_coerced(self):
        assert JobConfig(speaking_rate="Fast").speaking_rate is SpeakingRate.FAST

    def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            JobConfig(concurrency_limit=0)

    def test_round_trip(self):
        config = JobConfig(voice="Kore", speaking_rate="Slow", export_filename="x")
        assert JobConfig.from_dict(config.to_dict()) == config


class TestJob:
    def _job(self) -> Job:
        return Job(units=(Unit(text="a"), Unit(text="b"), Unit(text="c")))

    def test_with_unit_keeps_order(self):
        job = self._job()
        changed = job.with_unit(job.units[1].dispatched())
        assert [u.text for u in changed.units] == ["a", "b", "c"]
        assert changed.units[1].status is UnitStatus.IN_FLIGHT
        assert job.units[1].status is UnitStatus.PENDING

    def test_without_unit(self):
        job = self._job()
        assert [u.text for u in job.without_unit(job.units[0].id).units] == ["b", "c"]

    def test_counts_and_views(self):
        job = self._job()
        job = job.with_unit(job.units[0].completed("r"))
        job = job.with_unit(job.units[1].failed("x"))
        assert job.count(UnitStatus.DONE) == 1
        assert [u.text for u in job.runnable_units] == ["c"]
        assert [u.text for u in job.done_units] == ["a"]

    def test_unit_lookup(self):
        job = self._job()
        assert job.unit(job.units[2].id) is job.units[2]
        assert job.unit("missing") is None

    def test_run_state_not_persisted(self):
        job = Job(running=True, progress=RunProgress.begin(3))
        data = job.to_dict()
        assert "running" not in data
        restored = Job.from_dict(data)
        assert restored.running is False
        assert restored.progress.total == 0

    def test_in_flight_reloads_queued(self):
        job = self._job()
        job = job.with_unit(job.units[0].dispatched())
        restored = Job.from_dict(job.to_dict())
        assert restored.units[0].status is UnitStatus.QUEUED
        assert restored.id == job.id
