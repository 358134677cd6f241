"""Tests for run progress and ETA."""

from voicequeue.progress import RunProgress


class TestRunProgress:
    def test_idle(self):
        progress = RunProgress()
        assert progress.is_idle
        assert progress.percent_complete == 0.0
        assert progress.summary() == "idle"

    def test_advance(self):
        progress = RunProgress.begin(4).advance()
        assert (progress.current, progress.total) == (1, 4)
        assert progress.percent_complete == 25.0

    def test_eta_unknown_before_first_outcome(self):
        assert RunProgress.begin(3).eta_seconds() is None
        assert RunProgress.begin(3).eta_display() == "estimating..."

    def test_eta_from_pace(self):
        progress = RunProgress(current=2, total=4, started_at=100.0)
        assert progress.eta_seconds(now=110.0) == 10.0
        assert progress.eta_display(now=110.0) == "~10s remaining"

    def test_eta_minutes(self):
        progress = RunProgress(current=1, total=3, started_at=5.0)
        assert progress.eta_display(now=70.0) == "~2m 10s remaining"

    def test_summary(self):
        progress = RunProgress(current=4, total=4, started_at=1.0)
        assert progress.summary(now=2.0) == "[4/4] 100%"

    def test_to_dict(self):
        assert RunProgress(current=1, total=2).to_dict() == {"current": 1, "total": 2}
