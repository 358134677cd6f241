"""
Core data models for voicequeue.

These are the records that flow through the system:
- Unit: one chunk of text and its synthesis lifecycle
- Job: an ordered collection of Units plus run settings
- JobConfig: job-level settings (voice, style, pace, limits)

Units and Jobs are immutable. Every change produces a new record
which the JobStore swaps in whole.
"""

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from voicequeue.progress import RunProgress


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return uuid.uuid4().hex


class UnitStatus(Enum):
    """Lifecycle state of a Unit."""
    PENDING = "pending"
    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_runnable(self) -> bool:
        """Whether the scheduler picks this unit up on its next run."""
        return self in (UnitStatus.PENDING, UnitStatus.QUEUED)


class SpeakingRate(Enum):
    """Narration pace."""
    SLOW = "Slow"
    NORMAL = "Normal"
    FAST = "Fast"
    VERY_FAST = "Very Fast"

    @classmethod
    def parse(cls, value: "str | SpeakingRate") -> "SpeakingRate":
        """Accept either the label ("Very Fast") or the name ("very_fast")."""
        if isinstance(value, SpeakingRate):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Speaking rate must be a string, got {value!r}")
        for rate in cls:
            if value == rate.value or value.upper().replace("-", "_") == rate.name:
                return rate
        raise ValueError(
            f"Unknown speaking rate: {value!r}. "
            f"Available: {', '.join(r.value for r in cls)}"
        )


MIN_GAIN = 0.0
MAX_GAIN = 2.0


def check_gain(gain: float) -> float:
    """Validate a gain value and return it as float."""
    gain = float(gain)
    if not MIN_GAIN <= gain <= MAX_GAIN:
        raise ValueError(f"Gain must be between {MIN_GAIN} and {MAX_GAIN}, got {gain}")
    return gain


@dataclass(frozen=True)
class Unit:
    """
    One chunk of text to be synthesized.

    Attributes:
        id: Opaque identifier, stable for the unit's lifetime
        text: Text to speak
        status: Lifecycle state
        result: Container reference, set only when DONE
        error_message: Failure text, set only when FAILED
        gain: Linear volume multiplier applied at merge time (0.0-2.0)
        selected: UI tag used for bulk gain changes
    """
    text: str
    id: str = field(default_factory=new_id)
    status: UnitStatus = UnitStatus.PENDING
    result: Optional[str] = None
    error_message: Optional[str] = None
    gain: float = 1.0
    selected: bool = False

    def __post_init__(self):
        if not self.text:
            raise ValueError("Unit text must not be empty")
        check_gain(self.gain)
        if self.status is UnitStatus.DONE:
            if self.result is None or self.error_message is not None:
                raise ValueError(f"Unit {self.id}: DONE requires a result and no error")
        elif self.status is UnitStatus.FAILED:
            if self.error_message is None or self.result is not None:
                raise ValueError(f"Unit {self.id}: FAILED requires an error and no result")
        elif self.result is not None or self.error_message is not None:
            raise ValueError(
                f"Unit {self.id}: {self.status.value} must not carry a result or error"
            )

    def dispatched(self) -> "Unit":
        return replace(self, status=UnitStatus.IN_FLIGHT, error_message=None)

    def completed(self, result: str) -> "Unit":
        return replace(self, status=UnitStatus.DONE, result=result, error_message=None)

    def failed(self, error_message: str) -> "Unit":
        return replace(self, status=UnitStatus.FAILED, result=None, error_message=error_message)

    def requeued(self) -> "Unit":
        return replace(self, status=UnitStatus.QUEUED, result=None, error_message=None)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "status": self.status.value,
            "result": self.result,
            "error_message": self.error_message,
            "gain": self.gain,
            "selected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Unit":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            text=data["text"],
            status=UnitStatus(data.get("status", "pending")),
            result=data.get("result"),
            error_message=data.get("error_message"),
            gain=data.get("gain", 1.0),
            selected=data.get("selected", False),
        )


@dataclass
class JobConfig:
    """
    Job-level configuration.

    Attributes:
        voice: Prebuilt voice name (see voicequeue.voices)
        style_instruction: Free-text delivery instruction prepended to each chunk
        speaking_rate: Narration pace
        concurrency_limit: Maximum synthesis calls outstanding at once
        max_attempts: Attempts per unit before it is marked failed
        backoff_base_s: Delay unit between attempts (attempt index x base)
        max_chunk_length: Soft character budget per unit
        sample_rate: PCM sample rate of provider audio and exported files
        language_code: Language profile used for sentence splitting
        export_filename: Default export file name ("" means narration.wav)
        model: Provider model identifier
    """
    voice: str = "Zephyr"
    style_instruction: str = ""
    speaking_rate: SpeakingRate = SpeakingRate.NORMAL
    concurrency_limit: int = 2
    max_attempts: int = 3
    backoff_base_s: float = 1.0
    max_chunk_length: int = 1000
    sample_rate: int = 24000
    language_code: str = "bn"
    export_filename: str = ""
    model: str = "gemini-2.5-flash-preview-tts"

    def __post_init__(self):
        self.speaking_rate = SpeakingRate.parse(self.speaking_rate)
        if self.concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "voice": self.voice,
            "style_instruction": self.style_instruction,
            "speaking_rate": self.speaking_rate.value,
            "concurrency_limit": self.concurrency_limit,
            "max_attempts": self.max_attempts,
            "backoff_base_s": self.backoff_base_s,
            "max_chunk_length": self.max_chunk_length,
            "sample_rate": self.sample_rate,
            "language_code": self.language_code,
            "export_filename": self.export_filename,
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JobConfig":
        """Deserialize from dictionary."""
        return cls(
            voice=data.get("voice", "Zephyr"),
            style_instruction=data.get("style_instruction", ""),
            speaking_rate=SpeakingRate.parse(data.get("speaking_rate", "Normal")),
            concurrency_limit=data.get("concurrency_limit", 2),
            max_attempts=data.get("max_attempts", 3),
            backoff_base_s=data.get("backoff_base_s", 1.0),
            max_chunk_length=data.get("max_chunk_length", 1000),
            sample_rate=data.get("sample_rate", 24000),
            language_code=data.get("language_code", "bn"),
            export_filename=data.get("export_filename", ""),
            model=data.get("model", "gemini-2.5-flash-preview-tts"),
        )


@dataclass(frozen=True)
class Job:
    """
    An ordered sequence of Units sharing one set of run settings.

    `running` doubles as the mutual-exclusion flag for scheduling passes.
    """
    name: str = "Project 1"
    id: str = field(default_factory=new_id)
    units: tuple[Unit, ...] = ()
    config: JobConfig = field(default_factory=JobConfig)
    running: bool = False
    progress: RunProgress = field(default_factory=RunProgress)

    def unit(self, unit_id: str) -> Optional[Unit]:
        for unit in self.units:
            if unit.id == unit_id:
                return unit
        return None

    def with_unit(self, updated: Unit) -> "Job":
        """Return a copy with the unit of the same id swapped for `updated`."""
        return replace(
            self,
            units=tuple(updated if u.id == updated.id else u for u in self.units),
        )

    def without_unit(self, unit_id: str) -> "Job":
        return replace(self, units=tuple(u for u in self.units if u.id != unit_id))

    def count(self, status: UnitStatus) -> int:
        return sum(1 for u in self.units if u.status is status)

    @property
    def runnable_units(self) -> list[Unit]:
        return [u for u in self.units if u.status.is_runnable]

    @property
    def done_units(self) -> list[Unit]:
        return [u for u in self.units if u.status is UnitStatus.DONE]

    @property
    def selected_units(self) -> list[Unit]:
        return [u for u in self.units if u.selected]

    def to_dict(self) -> dict:
        """Serialize to dictionary (run state is not persisted)."""
        return {
            "id": self.id,
            "name": self.name,
            "config": self.config.to_dict(),
            "units": [u.to_dict() for u in self.units],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Job":
        """
        Deserialize from dictionary.

        Units saved mid-run come back QUEUED since no run owns them anymore.
        """
        units = []
        for unit_data in data.get("units", []):
            unit = Unit.from_dict(unit_data)
            if unit.status is UnitStatus.IN_FLIGHT:
                unit = unit.requeued()
            units.append(unit)
        return cls(
            id=data.get("id") or new_id(),
            name=data.get("name", "Project 1"),
            config=JobConfig.from_dict(data.get("config", {})),
            units=tuple(units),
        )
