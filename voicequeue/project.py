"""
NarrationProject - one Job plus its audio cache, persisted to JSON.

Manages the lifecycle:
1. Load source text (TXT/MD/EPUB or a string)
2. Chunk it into units
3. Run the queue engine over pending units
4. Adjust gain, retry or delete units
5. Export the merged WAV

Unit audio lives under `<project_dir>/.voicequeue/cache/units/`,
next to the project file, so a saved project can be resumed later.
"""

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from voicequeue.audio.merge import ExportResult, export
from voicequeue.audio.storage import (
    ContainerStore,
    DiskContainerStore,
    get_cache_root,
    write_atomic,
)
from voicequeue.language.profile import get_profile
from voicequeue.models import Job, JobConfig, Unit, UnitStatus
from voicequeue.scheduler import QueueEngine, RunReport, append_text
from voicequeue.store import JobStore
from voicequeue.synthesis.protocols import SynthesisClient

logger = logging.getLogger("voicequeue.project")

# Project file schema version for forward compatibility
SCHEMA_VERSION = 1

PROJECT_SUFFIX = ".voicequeue"


class NarrationProject:
    """
    Main project class.

    Example:
        project = NarrationProject.from_file("story.txt")
        project.configure(voice="Kore", speaking_rate="Slow")
        asyncio.run(project.run())
        project.export("story.wav")
        project.save()
    """

    def __init__(
        self,
        job: Job,
        *,
        author: str = "",
        source_path: Optional[Path] = None,
        project_path: Optional[Path] = None,
        created_at: Optional[str] = None,
        modified_at: Optional[str] = None,
        containers: Optional[ContainerStore] = None,
        store: Optional[JobStore] = None,
    ) -> None:
        self.author = author
        self.source_path = Path(source_path) if source_path else None
        self.project_path = Path(project_path) if project_path else None
        self.created_at = created_at or datetime.now().isoformat()
        self.modified_at = modified_at or self.created_at

        self.store = store or JobStore()
        self.job_id = self.store.add(job).id

        if containers is None:
            base = self.project_path.parent if self.project_path else Path.cwd()
            containers = DiskContainerStore(get_cache_root(base))
        self.containers = containers

        self._engine: Optional[QueueEngine] = None

    # -------------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------------

    @classmethod
    def new(
        cls,
        title: str = "Project 1",
        config: Optional[JobConfig] = None,
        **kwargs,
    ) -> "NarrationProject":
        """Create an empty project."""
        return cls(Job(name=title, config=config or JobConfig()), **kwargs)

    @classmethod
    def from_string(
        cls,
        text: str,
        title: str = "Project 1",
        config: Optional[JobConfig] = None,
        **kwargs,
    ) -> "NarrationProject":
        """Create a project and chunk `text` into its first units."""
        project = cls.new(title, config, **kwargs)
        project.add_text(text)
        return project

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        config: Optional[JobConfig] = None,
        **kwargs,
    ) -> "NarrationProject":
        """
        Create a project from a TXT/Markdown/EPUB file.

        Args:
            path: Input file
            config: Job settings (defaults apply otherwise)
            **kwargs: Passed to the constructor

        Returns:
            Initialized NarrationProject
        """
        from voicequeue.parser import load_source

        path = Path(path)
        metadata, text = load_source(path)

        kwargs.setdefault("author", metadata.get("author", ""))
        project = cls.new(
            metadata.get("title", path.stem),
            config,
            source_path=path,
            **kwargs,
        )
        project.add_text(text)
        return project

    @classmethod
    def load(
        cls,
        path: str | Path,
        containers: Optional[ContainerStore] = None,
    ) -> "NarrationProject":
        """
        Load project from JSON file.

        Units saved while in flight come back QUEUED.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Project file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        schema_version = data.get("schema_version", 1)
        if schema_version > SCHEMA_VERSION:
            raise ValueError(
                f"Project file uses schema v{schema_version}, "
                f"but this version only supports up to v{SCHEMA_VERSION}"
            )

        return cls(
            Job.from_dict(data.get("job", {})),
            author=data.get("author", ""),
            source_path=Path(data["source_path"]) if data.get("source_path") else None,
            project_path=path,
            created_at=data.get("created_at"),
            modified_at=data.get("modified_at"),
            containers=containers,
        )

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, path: Optional[str | Path] = None) -> Path:
        """
        Save project to JSON file.

        Args:
            path: Output path (uses project_path if not specified)

        Returns:
            Path to saved file
        """
        if path is None:
            if self.project_path is None:
                if self.source_path:
                    path = self.source_path.with_suffix(PROJECT_SUFFIX)
                else:
                    path = Path(f"{self.title}{PROJECT_SUFFIX}")
            else:
                path = self.project_path

        path = Path(path)
        self.project_path = path
        self.modified_at = datetime.now().isoformat()

        data = {
            "schema_version": SCHEMA_VERSION,
            "author": self.author,
            "source_path": str(self.source_path) if self.source_path else None,
            "created_at": self.created_at,
            "modified_at": self.modified_at,
            "job": self.job.to_dict(),
        }

        text = json.dumps(data, indent=2, ensure_ascii=False)
        write_atomic(path, text.encode("utf-8"))
        logger.info(f"PROJECT_SAVE: path={path} units={len(self.job.units)}")
        return path

    # -------------------------------------------------------------------------
    # Job access
    # -------------------------------------------------------------------------

    @property
    def job(self) -> Job:
        return self.store.get(self.job_id)

    @property
    def title(self) -> str:
        return self.job.name

    @property
    def config(self) -> JobConfig:
        return self.job.config

    @property
    def units(self) -> tuple[Unit, ...]:
        return self.job.units

    def configure(self, **changes) -> JobConfig:
        """Replace job settings, e.g. configure(voice="Kore", concurrency_limit=3)."""
        config = replace(self.config, **changes)
        self.store.update(self.job_id, lambda j: replace(j, config=config))
        return config

    def rename(self, title: str) -> None:
        self.store.update(self.job_id, lambda j: replace(j, name=title))

    def find_unit(self, ref: str | int) -> Unit:
        """
        Look up a unit by id, id prefix, or 1-based position.

        Raises:
            KeyError: No unit or an ambiguous prefix.
        """
        units = self.units
        if isinstance(ref, int) or (isinstance(ref, str) and ref.isdigit()):
            index = int(ref) - 1
            if 0 <= index < len(units):
                return units[index]
            raise KeyError(f"No unit at position {ref} (project has {len(units)})")

        matches = [u for u in units if u.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        if not matches:
            raise KeyError(f"No unit with id {ref!r}")
        raise KeyError(f"Ambiguous unit id {ref!r} ({len(matches)} matches)")

    def add_text(self, text: str) -> list[Unit]:
        return append_text(self.store, self.job_id, text)

    def add_file(self, path: str | Path) -> list[Unit]:
        from voicequeue.parser import load_source

        _, text = load_source(Path(path))
        return self.add_text(text)

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------

    def engine(
        self,
        client: Optional[SynthesisClient] = None,
        credentials: Optional[Iterable[str]] = None,
        *,
        sleep=None,
    ) -> QueueEngine:
        """
        The queue engine bound to this project's store and cache.

        Built on first use. Passing a client or credentials rebuilds it.
        Defaults: the Gemini client and the credential pool from settings.
        """
        if self._engine is not None and client is None and credentials is None:
            return self._engine

        if client is None:
            from voicequeue.synthesis.gemini import GeminiSynthesisClient

            client = GeminiSynthesisClient(
                model=self.config.model,
                sample_rate=self.config.sample_rate,
            )
        if credentials is None:
            from voicequeue.settings import load_settings

            credentials = load_settings().credential_pool

        kwargs = {"sleep": sleep} if sleep is not None else {}
        self._engine = QueueEngine(
            self.store, client, self.containers, credentials, **kwargs,
        )
        return self._engine

    async def run(self, engine: Optional[QueueEngine] = None) -> RunReport:
        """Synthesize every pending and queued unit."""
        return await (engine or self.engine()).run(self.job_id)

    def stop(self) -> None:
        if self._engine is not None:
            self._engine.stop(self.job_id)

    async def retry(self, unit_id: str, engine: Optional[QueueEngine] = None) -> RunReport:
        return await (engine or self.engine()).retry(self.job_id, unit_id)

    def retry_failed(self) -> list[Unit]:
        """Requeue every failed unit. The next run picks them up."""
        engine = self.engine()
        failed = [u for u in self.units if u.status is UnitStatus.FAILED]
        return [engine.requeue(self.job_id, u.id) for u in failed]

    def delete_unit(self, unit_id: str) -> Unit:
        return self.engine().delete_unit(self.job_id, unit_id)

    def set_gain(self, unit_id: str, gain: float) -> Unit:
        return self.engine().set_gain(self.job_id, unit_id, gain)

    def set_bulk_gain(self, gain: float) -> Job:
        return self.engine().set_bulk_gain(self.job_id, gain)

    def toggle_selected(self, unit_id: str) -> Unit:
        return self.engine().toggle_selected(self.job_id, unit_id)

    def select_all(self, selected: bool = True) -> Job:
        return self.engine().select_all(self.job_id, selected)

    def clear(self) -> Job:
        return self.engine().clear(self.job_id)

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def export(self, output_path: Optional[str | Path] = None) -> ExportResult:
        """
        Merge finished units into one WAV file.

        Args:
            output_path: Output file (default: export_filename or narration.wav)
        """
        path = Path(output_path) if output_path is not None else None
        return export(self.job, self.containers, path)

    async def preview(
        self,
        voice: Optional[str] = None,
        text: Optional[str] = None,
        client: Optional[SynthesisClient] = None,
    ) -> bytes:
        """
        Synthesize a short sample with the project's style and pace.

        Uses the language profile's preview sentence unless `text` is given.
        Not retried and not stored.
        """
        config = self.config
        sample = text or get_profile(config.language_code).preview_text
        if client is None:
            from voicequeue.synthesis.gemini import GeminiSynthesisClient
            from voicequeue.settings import load_settings

            pool = load_settings().credential_pool
            client = GeminiSynthesisClient(
                model=config.model,
                default_credential=pool[0] if pool else None,
                sample_rate=config.sample_rate,
            )
        return await client.synthesize(
            sample,
            voice or config.voice,
            config.style_instruction,
            config.speaking_rate,
        )

    # -------------------------------------------------------------------------
    # Info & Stats
    # -------------------------------------------------------------------------

    @property
    def total_chars(self) -> int:
        return sum(len(u.text) for u in self.units)

    def info(self) -> dict:
        """
        Get project information summary.

        Returns:
            Dict with project stats
        """
        job = self.job
        return {
            "title": job.name,
            "author": self.author,
            "source": str(self.source_path) if self.source_path else None,
            "units": len(job.units),
            "total_chars": self.total_chars,
            "pending": job.count(UnitStatus.PENDING),
            "queued": job.count(UnitStatus.QUEUED),
            "in_flight": job.count(UnitStatus.IN_FLIGHT),
            "done": job.count(UnitStatus.DONE),
            "failed": job.count(UnitStatus.FAILED),
            "selected": len(job.selected_units),
            "voice": job.config.voice,
            "speaking_rate": job.config.speaking_rate.value,
            "language": job.config.language_code,
        }

    def __repr__(self) -> str:
        return (
            f"NarrationProject(title={self.title!r}, "
            f"units={len(self.units)}, "
            f"chars={self.total_chars})"
        )

