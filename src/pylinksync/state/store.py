"""Snapshot storage.

:class:`SnapshotStore` is the only component that owns configuration
snapshots; everything else refers to them by vehicle id.
:class:`ScratchStore` keeps the primary and backup copies of the last
received raw payload.

Every file write goes through :func:`atomic_write` (temp file in the same
directory, then ``os.replace``) so a reader never observes a torn file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from pylinksync._constants import SCRATCH_BACKUP_NAME, SCRATCH_PRIMARY_NAME
from pylinksync.codec import decode_snapshot, encode_snapshot
from pylinksync.exceptions import CorruptSnapshotError, SnapshotPersistenceError
from pylinksync.models.snapshot import ConfigSnapshot

_logger = logging.getLogger(__name__)

_SNAPSHOT_SUFFIX = ".cfg"


def atomic_write(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a temp file and ``os.replace``.

    Raises :class:`SnapshotPersistenceError` on any OS-level failure.
    """
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        raise SnapshotPersistenceError(f"Failed to write {path}: {exc}", path=str(path)) from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                _logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


class ScratchStore:
    """Primary + backup copies of the most recently received payload."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def primary_path(self) -> Path:
        return self._directory / SCRATCH_PRIMARY_NAME

    @property
    def backup_path(self) -> Path:
        return self._directory / SCRATCH_BACKUP_NAME

    def write(self, data: bytes) -> None:
        """Overwrite both copies. Fails on the first copy that cannot be written."""
        atomic_write(self.primary_path, data)
        atomic_write(self.backup_path, data)

    def read(self) -> bytes:
        """Read the primary copy back, falling back to the backup."""
        try:
            return self.primary_path.read_bytes()
        except OSError:
            _logger.warning("Primary scratch copy unreadable, using backup", exc_info=True)
        try:
            return self.backup_path.read_bytes()
        except OSError as exc:
            raise SnapshotPersistenceError(
                f"Failed to read back scratch copies in {self._directory}: {exc}",
                path=str(self.backup_path),
            ) from exc


class SnapshotStore:
    """Known-vehicle snapshots keyed by vehicle id.

    With a *directory*, every :meth:`persist` also writes the encoded
    record to ``<directory>/<vehicle_id>.cfg``; without one the store is
    purely in-memory.
    """

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = Path(directory) if directory is not None else None
        self._snapshots: dict[int, ConfigSnapshot] = {}

    def __contains__(self, vehicle_id: object) -> bool:
        return vehicle_id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[ConfigSnapshot]:
        return iter(list(self._snapshots.values()))

    def find(self, vehicle_id: int) -> ConfigSnapshot | None:
        if vehicle_id == 0:
            return None
        return self._snapshots.get(vehicle_id)

    def put(self, snapshot: ConfigSnapshot) -> None:
        """Swap the in-memory snapshot for ``snapshot.vehicle_id``."""
        self._snapshots[snapshot.vehicle_id] = snapshot

    def persist(self, snapshot: ConfigSnapshot) -> None:
        """Store *snapshot* in memory and, when backed by a directory, on disk.

        The in-memory swap happens first and is kept even if the disk
        write raises :class:`SnapshotPersistenceError`.
        """
        self.put(snapshot)
        if self._directory is None:
            return
        atomic_write(self._path_for(snapshot.vehicle_id), encode_snapshot(snapshot))

    def remove(self, vehicle_id: int) -> ConfigSnapshot | None:
        removed = self._snapshots.pop(vehicle_id, None)
        if self._directory is not None:
            path = self._path_for(vehicle_id)
            try:
                path.unlink(missing_ok=True)
            except OSError:
                _logger.warning("Failed to delete stored snapshot %s", path, exc_info=True)
        return removed

    def load(self) -> int:
        """Load every readable record from the backing directory.

        Returns the number of snapshots loaded. Unreadable or corrupt
        records are logged and skipped.
        """
        if self._directory is None or not self._directory.is_dir():
            return 0
        loaded = 0
        for path in sorted(self._directory.glob(f"*{_SNAPSHOT_SUFFIX}")):
            try:
                snapshot = decode_snapshot(path.read_bytes())
            except (OSError, CorruptSnapshotError):
                _logger.warning("Skipping unreadable snapshot record %s", path, exc_info=True)
                continue
            self._snapshots[snapshot.vehicle_id] = snapshot
            loaded += 1
        return loaded

    def _path_for(self, vehicle_id: int) -> Path:
        assert self._directory is not None  # noqa: S101
        return self._directory / f"{vehicle_id}{_SNAPSHOT_SUFFIX}"
