"""
JobStore - owned, versioned record store for Jobs.

Readers get immutable snapshots. Writers hand in a function from the
current Job to its replacement; the store swaps the whole record and
bumps its version, so two tasks resolving back to back can never
interleave partial updates.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from voicequeue.models import Job

logger = logging.getLogger("voicequeue.store")

Listener = Callable[[Job], None]


class UnknownJob(KeyError):
    """Raised when a job id is not in the store."""

    def __init__(self, job_id: str) -> None:
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"Unknown job: {self.job_id}"


class UnknownUnit(KeyError):
    """Raised when a unit id is not part of a job."""

    def __init__(self, job_id: str, unit_id: str) -> None:
        super().__init__(unit_id)
        self.job_id = job_id
        self.unit_id = unit_id

    def __str__(self) -> str:
        return f"Unknown unit {self.unit_id} in job {self.job_id}"


class JobStore:
    """Keyed collection of Job records with per-record versions."""

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._versions: dict[str, int] = {}
        self._listeners: list[Listener] = []

    # ---- Reads ----

    def get(self, job_id: str) -> Job:
        """Current snapshot of a job."""
        try:
            return self._jobs[job_id]
        except KeyError:
            raise UnknownJob(job_id) from None

    def version(self, job_id: str) -> int:
        if job_id not in self._versions:
            raise UnknownJob(job_id)
        return self._versions[job_id]

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __iter__(self) -> Iterator[Job]:
        return iter(list(self._jobs.values()))

    def __len__(self) -> int:
        return len(self._jobs)

    # ---- Writes ----

    def add(self, job: Job) -> Job:
        """Insert a new job."""
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already exists")
        self._jobs[job.id] = job
        self._versions[job.id] = 1
        self._notify(job)
        return job

    def update(self, job_id: str, change: Callable[[Job], Job]) -> Job:
        """
        Replace a job with `change(current)`.

        Returns:
            The stored replacement.
        """
        current = self.get(job_id)
        updated = change(current)
        if updated.id != job_id:
            raise ValueError(f"Replacement for job {job_id} carries id {updated.id}")
        if updated is current:
            return current
        self._jobs[job_id] = updated
        self._versions[job_id] += 1
        self._notify(updated)
        return updated

    # ---- Observers ----

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with every stored replacement.

        Returns:
            A function that unregisters the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, job: Job) -> None:
        for listener in list(self._listeners):
            try:
                listener(job)
            except Exception:
                logger.exception(f"STORE_LISTENER_FAIL: job={job.id}")
