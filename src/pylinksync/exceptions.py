"""Custom exception hierarchy for pylinksync."""

from __future__ import annotations


class LinkSyncError(Exception):
    """Base exception for all pylinksync errors."""


class LinkSyncConfigError(LinkSyncError):
    """Invalid or missing configuration."""


class SnapshotError(LinkSyncError):
    """Failure while handling a configuration snapshot."""

    def __init__(self, message: str, *, vehicle_id: int = 0) -> None:
        self.vehicle_id = vehicle_id
        super().__init__(message)


class CorruptSnapshotError(SnapshotError):
    """Snapshot bytes could not be decoded.

    Raised by the codec for bad magic, unsupported format versions,
    truncated records, checksum mismatches and body validation failures.
    """


class SnapshotPersistenceError(SnapshotError):
    """A durable write (scratch copy or authoritative snapshot) failed."""

    def __init__(self, message: str, *, vehicle_id: int = 0, path: str = "") -> None:
        self.path = path
        super().__init__(message, vehicle_id=vehicle_id)


class UploadSegmentError(LinkSyncError):
    """A segmented upload received a malformed or out-of-range segment."""

    def __init__(self, message: str, *, file_id: int = 0, segment_index: int | None = None) -> None:
        self.file_id = file_id
        self.segment_index = segment_index
        super().__init__(message)
