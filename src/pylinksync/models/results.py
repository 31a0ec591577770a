"""Ingestion outcome model."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class IngestOutcome(StrEnum):
    ACCEPTED = "accepted"
    ACCEPTED_REQUIRES_REPAIR = "accepted_requires_repair"
    STORED_FOREIGN = "stored_foreign"
    UNKNOWN_VEHICLE = "unknown_vehicle"
    CORRUPT_SNAPSHOT = "corrupt_snapshot"
    PERSISTENCE_ERROR = "persistence_error"
    INPUT_REJECTED = "input_rejected"


_ACCEPTED_OUTCOMES = frozenset(
    {
        IngestOutcome.ACCEPTED,
        IngestOutcome.ACCEPTED_REQUIRES_REPAIR,
        IngestOutcome.STORED_FOREIGN,
    }
)


class IngestResult(BaseModel):
    """Classification of one ingestion plus the change signals behind it."""

    model_config = ConfigDict(frozen=True)

    outcome: IngestOutcome
    vehicle_id: int = 0
    snapshot_vehicle_id: int | None = None
    camera_changed: bool = False
    radio_critical: bool = False
    radio_changed: bool = False
    """Any radio field differs. Diagnostic only."""
    audio_enabled_changed: bool = False
    version_outdated: bool = False
    persisted: bool = True
    """``False`` when the merged snapshot could not be written back."""
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.outcome in _ACCEPTED_OUTCOMES

    @property
    def requires_repair(self) -> bool:
        return self.outcome == IngestOutcome.ACCEPTED_REQUIRES_REPAIR
