"""
voicequeue - long-form text to speech

Chunks long text into sentence-aligned units, synthesizes them through
a bounded, retrying, cancellable queue, and merges the finished audio
into one WAV file with per-unit volume.

Example:
    import asyncio
    from voicequeue import NarrationProject

    project = NarrationProject.from_file("story.txt")
    project.configure(voice="Kore", speaking_rate="Slow")
    asyncio.run(project.run())
    project.export("story.wav")
"""

__version__ = "0.1.0"

from voicequeue.models import (
    Unit,
    UnitStatus,
    Job,
    JobConfig,
    SpeakingRate,
)
from voicequeue.store import JobStore
from voicequeue.scheduler import QueueEngine, RunReport
from voicequeue.project import NarrationProject

__all__ = [
    "NarrationProject",
    "QueueEngine",
    "RunReport",
    "JobStore",
    "Unit",
    "UnitStatus",
    "Job",
    "JobConfig",
    "SpeakingRate",
]
