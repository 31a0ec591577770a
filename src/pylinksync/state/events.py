"""Normalized dispatcher events.

The enclosing dispatcher converts radio, UI and pairing notifications
into these events. Only the lifecycle and ingestion handlers interpret
them.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SyncEvent(BaseModel):
    """Base for all events fed to the controller."""

    model_config = ConfigDict(frozen=True)


class BeginPairing(SyncEvent):
    """User or repair sequence asked to start pairing."""


class LinkEstablished(SyncEvent):
    """The radio link with the home vehicle came up."""


class TelemetryReceived(SyncEvent):
    """Telemetry observed from a vehicle; the first one completes pairing."""

    vehicle_id: int = Field(..., ge=0)
    link_telemetry: bool | None = True
    fc_telemetry: bool | None = None
    armed: bool | None = None


class LinkLost(SyncEvent):
    """The link to the home vehicle dropped."""

    resync_on_recover: bool = False


class StopPairing(SyncEvent):
    """Pairing is about to stop."""


class PairingStopped(SyncEvent):
    """Pairing has fully stopped."""


class SettingsReceived(SyncEvent):
    """A complete raw configuration payload arrived for *vehicle_id*."""

    vehicle_id: int = Field(..., ge=0)
    data: bytes
    length: int | None = None
    unsolicited: bool = False


class SettingsSegmentReceived(SyncEvent):
    """One segment of a configuration payload sent in pieces."""

    vehicle_id: int = Field(..., ge=0)
    file_id: int = Field(..., gt=0)
    segment_index: int
    total_segments: int
    data: bytes
    filename: str = ""
    unsolicited: bool = False


class RelayModeChanged(SyncEvent):
    """The home vehicle switched relay mode."""

    mode: int | None = None


class MainVehicleChanged(SyncEvent):
    """The user selected another home vehicle."""

    vehicle_id: int = Field(..., ge=0)
    remove_previous_state: bool = True


class VehicleAdded(SyncEvent):
    vehicle_id: int = Field(..., gt=0)


class VehicleDeleted(SyncEvent):
    vehicle_id: int = Field(..., gt=0)


class ModalVisibilityChanged(SyncEvent):
    """A menu or modal was opened or closed by the UI layer."""

    visible: bool
