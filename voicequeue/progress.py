"""
Progress reporting and ETA estimation for queue runs.

Provides:
- RunProgress: the {current, total} record exposed on every Job
- Dynamic ETA from the observed pace of the current run
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class RunProgress:
    """
    Committed outcomes of the active run.

    Usage:
        progress = RunProgress.begin(total=10)
        progress = progress.advance()
        print(progress.summary())
    """
    current: int = 0
    total: int = 0
    started_at: float = 0.0

    @classmethod
    def begin(cls, total: int) -> "RunProgress":
        return cls(current=0, total=total, started_at=time.time())

    def advance(self) -> "RunProgress":
        return replace(self, current=self.current + 1)

    @property
    def is_idle(self) -> bool:
        return self.total == 0

    @property
    def percent_complete(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100

    def elapsed_s(self, now: Optional[float] = None) -> float:
        if not self.started_at:
            return 0.0
        return (now if now is not None else time.time()) - self.started_at

    def eta_seconds(self, now: Optional[float] = None) -> Optional[float]:
        """Estimated time remaining in seconds."""
        remaining = self.total - self.current
        if remaining <= 0:
            return 0.0
        if self.current == 0:
            return None  # Can't estimate yet
        return remaining * (self.elapsed_s(now) / self.current)

    def eta_display(self, now: Optional[float] = None) -> str:
        """Human-readable ETA string."""
        eta = self.eta_seconds(now)
        if eta is None:
            return "estimating..."
        if eta <= 0:
            return "done"
        minutes = int(eta // 60)
        seconds = int(eta % 60)
        if minutes > 0:
            return f"~{minutes}m {seconds}s remaining"
        return f"~{seconds}s remaining"

    def summary(self, now: Optional[float] = None) -> str:
        """Human-readable progress line."""
        if self.is_idle:
            return "idle"
        line = f"[{self.current}/{self.total}] {self.percent_complete:.0f}%"
        eta = self.eta_display(now)
        if eta != "done":
            line += f" | {eta}"
        return line

    def to_dict(self) -> dict:
        return {"current": self.current, "total": self.total}
