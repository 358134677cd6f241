"""
Merge assembly for voicequeue.

Concatenates the audio of finished units, in their stored order,
into one WAV container with per-unit gain applied.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from voicequeue.audio import volume, wav
from voicequeue.audio.storage import ContainerStore, write_atomic
from voicequeue.models import Job, Unit, UnitStatus

logger = logging.getLogger("voicequeue.merge")

DEFAULT_EXPORT_NAME = "narration"


class MergeError(RuntimeError):
    """Merging failed; no output was produced."""


class NothingToExport(MergeError):
    """No unit has finished audio."""

    def __init__(self, message: str = "No audio generated yet to export.") -> None:
        super().__init__(message)


class NoValidAudio(MergeError):
    """Finished units exist but none yielded usable samples."""

    def __init__(self, message: str = "No valid audio data to export.") -> None:
        super().__init__(message)


@dataclass
class ExportResult:
    """Result of writing a merged file."""
    output_path: Path
    size_bytes: int
    duration_seconds: float
    unit_count: int


def merge(
    units: Iterable[Unit],
    containers: ContainerStore,
    sample_rate: int = wav.SAMPLE_RATE,
) -> bytes:
    """
    Merge finished units into a single container.

    Args:
        units: Units in display order (playback order = this order)
        containers: Store holding each unit's result
        sample_rate: Sample rate of the output header

    Returns:
        WAV bytes

    Raises:
        NothingToExport: No unit is DONE.
        NoValidAudio: No DONE unit produced any samples.
    """
    done = [u for u in units if u.status is UnitStatus.DONE]
    if not done:
        raise NothingToExport()

    payloads = []
    for unit in done:
        try:
            container = containers.get(unit.result)
        except (KeyError, OSError) as e:
            logger.warning(f"MERGE_SKIP: unit={unit.id} reason=fetch_failed error={e}")
            continue

        if len(container) < wav.HEADER_SIZE:
            logger.warning(f"MERGE_SKIP: unit={unit.id} reason=short_container bytes={len(container)}")
            continue

        raw = wav.decode(container)
        if not volume.is_unity(unit.gain):
            raw = volume.scale(raw, unit.gain)
        payloads.append(raw)

    merged = b"".join(payloads)
    if not merged:
        raise NoValidAudio()

    logger.info(
        f"MERGE_OK: units={len(payloads)} skipped={len(done) - len(payloads)} "
        f"payload_bytes={len(merged)}"
    )
    return wav.encode(merged, sample_rate)


def resolve_export_path(job: Job, output_path: Optional[Path] = None) -> Path:
    """Pick the export file name, appending .wav when missing."""
    if output_path is not None:
        path = Path(output_path)
    else:
        path = Path(job.config.export_filename.strip() or DEFAULT_EXPORT_NAME)
    if path.suffix.lower() != ".wav":
        path = path.with_name(path.name + ".wav")
    return path


def export(
    job: Job,
    containers: ContainerStore,
    output_path: Optional[Path] = None,
) -> ExportResult:
    """
    Merge a job's finished units and write the result to disk.

    Nothing is written when merging fails.
    """
    path = resolve_export_path(job, output_path)
    data = merge(job.units, containers, job.config.sample_rate)
    write_atomic(path, data)

    result = ExportResult(
        output_path=path,
        size_bytes=len(data),
        duration_seconds=wav.duration_seconds(data, job.config.sample_rate),
        unit_count=len(job.done_units),
    )
    logger.info(
        f"EXPORT_OK: job={job.id} output={path} bytes={result.size_bytes} "
        f"duration={result.duration_seconds:.1f}s"
    )
    return result
