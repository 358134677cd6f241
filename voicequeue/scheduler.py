"""
Queue Engine for voicequeue.

Drives a job's pending units through a SynthesisClient:
- at most `concurrency_limit` synthesis calls outstanding
- per-unit retry with linear-step backoff
- round-robin over the credential pool
- cooperative, chunk-granular cancellation

Every state change goes through JobStore.update as a whole-record
replacement. Accepts an injected client and sleep primitive for
testability.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, asdict, replace
from typing import Awaitable, Callable, Iterable, Optional

from voicequeue.audio.storage import ContainerStore
from voicequeue.chunking import chunk_text
from voicequeue.language.profile import get_profile
from voicequeue.models import Job, JobConfig, Unit, UnitStatus, check_gain
from voicequeue.progress import RunProgress
from voicequeue.store import JobStore, UnknownUnit
from voicequeue.synthesis.errors import describe_exception
from voicequeue.synthesis.protocols import SynthesisClient

# Structured logger for queue operations
logger = logging.getLogger("voicequeue.scheduler")

Sleep = Callable[[float], Awaitable[None]]


# ---------------------------------------------------------------------------
# Structured logging
# ---------------------------------------------------------------------------

@dataclass
class UnitLog:
    """Structured log entry for one unit's synthesis."""
    job_id: str
    unit_id: str
    chars: int
    credential_slot: int = -1
    attempts: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    status: str = "pending"  # pending | done | failed | discarded
    error_message: str = ""

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    def log(self):
        if self.status == "failed":
            logger.error(f"SYNTH_FAIL: {self.to_json()}")
        elif self.status == "discarded":
            logger.info(f"SYNTH_DISCARDED: {self.to_json()}")
        else:
            logger.info(f"SYNTH_OK: {self.to_json()}")


# ---------------------------------------------------------------------------
# Run helpers
# ---------------------------------------------------------------------------

class StopSignal:
    """Cancellation token for one run. Once set it stays set."""

    def __init__(self) -> None:
        self._stopped = False

    def set(self) -> None:
        self._stopped = True

    @property
    def is_set(self) -> bool:
        return self._stopped


class CredentialRotation:
    """Round-robin cursor over the credential pool."""

    def __init__(self, pool: Iterable[str] = ()) -> None:
        self._pool = tuple(pool)
        self.cursor = 0

    def next(self) -> tuple[int, Optional[str]]:
        """
        Take the next credential.

        Returns:
            (slot, credential). Slot is -1 and credential None for an
            empty pool, meaning the client's ambient default.
        """
        if len(self._pool) == 0:
            return -1, None
        slot = self.cursor % len(self._pool)
        self.cursor += 1
        return slot, self._pool[slot]


@dataclass
class RunReport:
    """Outcome counts of one run (returned to caller for user-facing messages)."""
    job_id: str
    started: bool = False
    cancelled: bool = False
    total: int = 0
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    discarded: int = 0


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class QueueEngine:
    """
    Runs jobs held in a JobStore.

    Jobs are independent: each run owns its own StopSignal, worker
    pool and credential cursor. Only the credential pool is shared,
    read-only.
    """

    def __init__(
        self,
        store: JobStore,
        client: SynthesisClient,
        containers: ContainerStore,
        credentials: Iterable[str] = (),
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.store = store
        self.client = client
        self.containers = containers
        self.credentials = tuple(credentials)
        self._sleep = sleep
        self._signals: dict[str, StopSignal] = {}

    # ---- Jobs ----

    def create_job(self, name: str = "Project 1", config: Optional[JobConfig] = None) -> Job:
        return self.store.add(Job(name=name, config=config or JobConfig()))

    def is_running(self, job_id: str) -> bool:
        return self.store.get(job_id).running

    # ---- Run ----

    async def run(self, job_id: str) -> RunReport:
        """
        Synthesize every PENDING/QUEUED unit of a job.

        A second call while the job is running does nothing.

        Returns:
            RunReport with outcome counts.
        """
        report = RunReport(job_id=job_id)
        job = self.store.get(job_id)
        if job.running:
            logger.info(f"RUN_SKIPPED: job={job_id} reason=already_running")
            return report

        signal = StopSignal()
        self._signals[job_id] = signal
        report.started = True
        job = self.store.update(job_id, lambda j: replace(j, running=True))

        selection = [u.id for u in job.runnable_units]
        report.total = len(selection)
        if not selection:
            logger.info(f"RUN_EMPTY: job={job_id}")
            self._finish(job_id, signal, report)
            return report

        selected = set(selection)

        def mark_in_flight(j: Job) -> Job:
            return replace(
                j,
                units=tuple(u.dispatched() if u.id in selected else u for u in j.units),
                progress=RunProgress.begin(len(selection)),
            )

        job = self.store.update(job_id, mark_in_flight)
        config = job.config
        rotation = CredentialRotation(self.credentials)

        logger.info(
            f"RUN_START: job={job_id} units={len(selection)} "
            f"concurrency={config.concurrency_limit} credentials={len(self.credentials)}"
        )

        outstanding: set[asyncio.Task] = set()
        try:
            for unit_id in selection:
                if signal.is_set:
                    break

                if len(outstanding) >= config.concurrency_limit:
                    _, outstanding = await asyncio.wait(
                        outstanding, return_when=asyncio.FIRST_COMPLETED,
                    )
                    if signal.is_set:
                        break

                # Units deleted since selection are not dispatched
                unit = self.store.get(job_id).unit(unit_id)
                if unit is None or unit.status is not UnitStatus.IN_FLIGHT:
                    continue

                slot, credential = rotation.next()
                outstanding.add(asyncio.create_task(
                    self._process(job_id, unit, config, slot, credential, signal, report)
                ))
                report.dispatched += 1

            if outstanding:
                await asyncio.gather(*outstanding)
        except (Exception, asyncio.CancelledError):
            await self._abandon(job_id, signal, outstanding, selected)
            raise
        finally:
            self._finish(job_id, signal, report)

        return report

    async def _abandon(
        self,
        job_id: str,
        signal: StopSignal,
        outstanding: set[asyncio.Task],
        selected: set[str],
    ) -> None:
        """Tear down a run that exits on an error or cancellation."""
        owned = self._signals.get(job_id) is signal
        signal.set()
        for task in outstanding:
            task.cancel()
        await asyncio.gather(*outstanding, return_exceptions=True)
        logger.warning(f"RUN_ABORTED: job={job_id} outstanding={len(outstanding)}")

        if not owned or job_id not in self.store:
            return

        def requeue_selection(j: Job) -> Job:
            return replace(j, units=tuple(
                u.requeued() if u.id in selected and u.status is UnitStatus.IN_FLIGHT else u
                for u in j.units
            ))

        self.store.update(job_id, requeue_selection)

    async def _process(
        self,
        job_id: str,
        unit: Unit,
        config: JobConfig,
        slot: int,
        credential: Optional[str],
        signal: StopSignal,
        report: RunReport,
    ) -> None:
        """Synthesize one unit and commit its outcome unless stopped."""
        unit_log = UnitLog(
            job_id=job_id,
            unit_id=unit.id,
            chars=len(unit.text),
            credential_slot=slot,
            start_time=time.time(),
        )

        container, error = await self._attempt(unit, config, credential, signal, unit_log)
        unit_log.end_time = time.time()

        if signal.is_set:
            report.discarded += 1
            unit_log.status = "discarded"
            unit_log.log()
            return

        ref = None
        if container is not None:
            try:
                ref = await asyncio.to_thread(self.containers.put, unit.id, container)
            except OSError as e:
                error = f"Could not store audio: {e}"

            if signal.is_set:
                # Stopped while the audio was being written
                if ref is not None:
                    self.containers.release(ref)
                report.discarded += 1
                unit_log.status = "discarded"
                unit_log.log()
                return

        applied = self._commit(job_id, unit.id, ref, error)

        if not applied:
            report.discarded += 1
            unit_log.status = "discarded"
        elif ref is not None:
            report.succeeded += 1
            unit_log.status = "done"
        else:
            report.failed += 1
            unit_log.status = "failed"
            unit_log.error_message = error or ""
        unit_log.log()

    async def _attempt(
        self,
        unit: Unit,
        config: JobConfig,
        credential: Optional[str],
        signal: StopSignal,
        unit_log: UnitLog,
    ) -> tuple[Optional[bytes], Optional[str]]:
        """
        Bounded retry loop around one synthesis call.

        Returns:
            (container, None) on success, (None, last error text) otherwise.
        """
        last_error = "Generation failed"
        for attempt in range(config.max_attempts):
            if attempt > 0:
                await self._sleep(config.backoff_base_s * attempt)
                if signal.is_set:
                    return None, last_error

            unit_log.attempts = attempt + 1
            try:
                container = await self.client.synthesize(
                    unit.text,
                    config.voice,
                    config.style_instruction,
                    config.speaking_rate,
                    credential,
                )
                return container, None
            except Exception as e:
                last_error = describe_exception(e)
                logger.warning(
                    f"SYNTH_ATTEMPT_FAIL: unit={unit.id} "
                    f"attempt={attempt + 1}/{config.max_attempts} error={last_error}"
                )

        return None, last_error

    def _commit(self, job_id: str, unit_id: str, ref: Optional[str], error: Optional[str]) -> bool:
        """
        Apply a unit outcome and the progress tick in one replacement.

        Returns:
            False when the unit was deleted while in flight.
        """
        orphaned = False

        def apply(j: Job) -> Job:
            nonlocal orphaned
            current = j.unit(unit_id)
            progress = j.progress.advance()
            if current is None:
                orphaned = True
                return replace(j, progress=progress)
            updated = current.completed(ref) if ref is not None else current.failed(error or "Generation failed")
            return replace(j.with_unit(updated), progress=progress)

        self.store.update(job_id, apply)

        if orphaned and ref is not None:
            # Unit was deleted while in flight; nothing owns the audio now.
            self.containers.release(ref)
        return not orphaned

    def _finish(self, job_id: str, signal: StopSignal, report: RunReport) -> None:
        report.cancelled = signal.is_set
        if self._signals.get(job_id) is not signal:
            # A newer run owns the job; leave its state alone.
            logger.info(f"RUN_SUPERSEDED: job={job_id}")
        else:
            del self._signals[job_id]
            if job_id in self.store:
                self.store.update(
                    job_id, lambda j: replace(j, running=False, progress=RunProgress()),
                )
        _log_report(report)

    # ---- User actions ----

    def stop(self, job_id: str) -> Job:
        """
        Cancel the job's active run.

        Returns immediately: in-flight calls keep going but their
        results are dropped. Units left IN_FLIGHT go back to QUEUED.
        """
        signal = self._signals.get(job_id)
        if signal is not None:
            signal.set()

        def halt(j: Job) -> Job:
            return replace(
                j,
                running=False,
                progress=RunProgress(),
                units=tuple(
                    u.requeued() if u.status is UnitStatus.IN_FLIGHT else u for u in j.units
                ),
            )

        logger.info(f"RUN_STOP: job={job_id}")
        return self.store.update(job_id, halt)

    def requeue(self, job_id: str, unit_id: str) -> Unit:
        """Move a FAILED unit back to QUEUED and clear its error."""
        unit = self._get_unit(job_id, unit_id)
        if unit.status is not UnitStatus.FAILED:
            raise ValueError(f"Unit {unit_id} is {unit.status.value}, only failed units can be retried")
        updated = unit.requeued()
        self.store.update(job_id, lambda j: j.with_unit(updated))
        return updated

    async def retry(self, job_id: str, unit_id: str) -> RunReport:
        """Requeue a failed unit and run the job again."""
        self.requeue(job_id, unit_id)
        return await self.run(job_id)

    def delete_unit(self, job_id: str, unit_id: str) -> Unit:
        """Remove a unit in any state and release its audio."""
        unit = self._get_unit(job_id, unit_id)
        self.store.update(job_id, lambda j: j.without_unit(unit_id))
        if unit.result is not None:
            self.containers.release(unit.result)
        return unit

    def clear(self, job_id: str) -> Job:
        """Stop the job, release all audio and drop every unit."""
        job = self.stop(job_id)
        for unit in job.units:
            if unit.result is not None:
                self.containers.release(unit.result)
        return self.store.update(job_id, lambda j: replace(j, units=()))

    def add_text(self, job_id: str, text: str) -> list[Unit]:
        return append_text(self.store, job_id, text)

    def set_gain(self, job_id: str, unit_id: str, gain: float) -> Unit:
        gain = check_gain(gain)
        updated = replace(self._get_unit(job_id, unit_id), gain=gain)
        self.store.update(job_id, lambda j: j.with_unit(updated))
        return updated

    def set_bulk_gain(self, job_id: str, gain: float) -> Job:
        """Set gain on the selected units, or on every unit when none is selected."""
        gain = check_gain(gain)

        def apply(j: Job) -> Job:
            has_selection = any(u.selected for u in j.units)
            return replace(j, units=tuple(
                replace(u, gain=gain) if (u.selected or not has_selection) else u
                for u in j.units
            ))

        return self.store.update(job_id, apply)

    def toggle_selected(self, job_id: str, unit_id: str) -> Unit:
        unit = self._get_unit(job_id, unit_id)
        updated = replace(unit, selected=not unit.selected)
        self.store.update(job_id, lambda j: j.with_unit(updated))
        return updated

    def select_all(self, job_id: str, selected: bool = True) -> Job:
        return self.store.update(
            job_id,
            lambda j: replace(j, units=tuple(replace(u, selected=selected) for u in j.units)),
        )

    def _get_unit(self, job_id: str, unit_id: str) -> Unit:
        unit = self.store.get(job_id).unit(unit_id)
        if unit is None:
            raise UnknownUnit(job_id, unit_id)
        return unit


def append_text(store: JobStore, job_id: str, text: str) -> list[Unit]:
    """Chunk text with the job's settings and append PENDING units."""
    config = store.get(job_id).config
    chunks = chunk_text(
        text,
        config.max_chunk_length,
        profile=get_profile(config.language_code),
    )
    new_units = [Unit(text=chunk) for chunk in chunks]
    if new_units:
        store.update(job_id, lambda j: replace(j, units=j.units + tuple(new_units)))
    logger.info(f"UNITS_ADDED: job={job_id} count={len(new_units)} chars={len(text)}")
    return new_units


def _log_report(report: RunReport) -> None:
    """Log the run summary."""
    logger.info(
        f"RUN_SUMMARY: job={report.job_id} started={report.started} "
        f"cancelled={report.cancelled} total={report.total} "
        f"dispatched={report.dispatched} done={report.succeeded} "
        f"failed={report.failed} discarded={report.discarded}"
    )
