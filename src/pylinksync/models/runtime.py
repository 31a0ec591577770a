"""Runtime bookkeeping for vehicles tracked during a pairing session."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RuntimeVehicleEntry(BaseModel):
    """One registry slot.

    The entry holds the vehicle id only; the snapshot itself is owned by
    the snapshot store and resolved by key.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    vehicle_id: int = Field(default=0, ge=0)
    got_link_telemetry: bool = False
    got_fc_telemetry: bool = False
    is_armed: bool = False

    @property
    def is_empty(self) -> bool:
        return self.vehicle_id == 0
