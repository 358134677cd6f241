"""
Container storage - where finished unit audio lives.

A Unit's `result` is a key into a ContainerStore. The Unit owns the
entry; the scheduler releases it when the unit is deleted or the job
is cleared.

Two stores:
- MemoryContainerStore: process-local, used by tests and previews
- DiskContainerStore: one WAV per unit under the project cache,
  written atomically (tmp -> rename)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger("voicequeue.storage")


class ContainerNotFound(KeyError):
    """Raised when a container reference cannot be resolved."""

    def __str__(self) -> str:
        return f"Container not found: {self.args[0]}"


@runtime_checkable
class ContainerStore(Protocol):
    """Interface for storing unit audio."""

    def put(self, unit_id: str, container: bytes) -> str: ...

    def get(self, ref: str) -> bytes: ...

    def release(self, ref: str) -> None: ...


class MemoryContainerStore:
    """Keeps containers in a dict keyed by unit id."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def put(self, unit_id: str, container: bytes) -> str:
        self._data[unit_id] = bytes(container)
        return unit_id

    def get(self, ref: str) -> bytes:
        try:
            return self._data[ref]
        except KeyError:
            raise ContainerNotFound(ref) from None

    def release(self, ref: str) -> None:
        self._data.pop(ref, None)

    def __contains__(self, ref: object) -> bool:
        return ref in self._data

    def __len__(self) -> int:
        return len(self._data)


class DiskContainerStore:
    """One WAV file per unit under `<root>/units/`."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def units_dir(self) -> Path:
        return self.root / "units"

    def path_for(self, ref: str) -> Path:
        return self.units_dir / f"{ref}.wav"

    def put(self, unit_id: str, container: bytes) -> str:
        target = self.path_for(unit_id)
        write_atomic(target, container)
        logger.debug(f"CONTAINER_PUT: ref={unit_id} bytes={len(container)}")
        return unit_id

    def get(self, ref: str) -> bytes:
        path = self.path_for(ref)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ContainerNotFound(ref) from None

    def release(self, ref: str) -> None:
        self.path_for(ref).unlink(missing_ok=True)
        logger.debug(f"CONTAINER_RELEASE: ref={ref}")

    def __contains__(self, ref: object) -> bool:
        return isinstance(ref, str) and self.path_for(ref).exists()


# ---------------------------------------------------------------------------
# Atomic I/O
# ---------------------------------------------------------------------------

def write_atomic(path: Path, data: bytes) -> Path:
    """Write bytes via a sibling tmp file and rename into place."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(str(tmp_path), str(path))
    finally:
        tmp_path.unlink(missing_ok=True)
    return path


# ---------------------------------------------------------------------------
# Cache directory layout
# ---------------------------------------------------------------------------

def get_cache_root(project_dir: Path) -> Path:
    """<project_dir>/.voicequeue/cache/"""
    return Path(project_dir) / ".voicequeue" / "cache"
