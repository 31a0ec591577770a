"""Bounded table of the vehicles tracked during a pairing session.

Slot 0 always holds the home vehicle; slot 1 the relayed vehicle, if any.
"""

from __future__ import annotations

from pylinksync._constants import HOME_SLOT, MAX_CONCURRENT_VEHICLES, RELAY_SLOT
from pylinksync.models.runtime import RuntimeVehicleEntry


class VehicleRegistry:
    """Fixed-capacity registry keyed by vehicle id.

    At most one slot holds a given vehicle id. Setting a vehicle into a
    slot clears any other slot already holding that id.
    """

    def __init__(self, capacity: int = MAX_CONCURRENT_VEHICLES) -> None:
        if capacity < 1:
            raise ValueError("registry capacity must be at least 1")
        self._slots: list[RuntimeVehicleEntry] = [RuntimeVehicleEntry() for _ in range(capacity)]

    def __len__(self) -> int:
        return sum(1 for entry in self._slots if not entry.is_empty)

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def reset(self) -> None:
        for index in range(len(self._slots)):
            self._slots[index] = RuntimeVehicleEntry()

    def set_home(self, vehicle_id: int) -> None:
        self._set(HOME_SLOT, vehicle_id)

    def set_relay(self, vehicle_id: int) -> None:
        self._set(RELAY_SLOT, vehicle_id)

    def _set(self, slot: int, vehicle_id: int) -> None:
        if not 0 <= slot < len(self._slots):
            raise IndexError(f"registry slot {slot} out of range (capacity {len(self._slots)})")
        if vehicle_id == 0:
            raise ValueError("vehicle id 0 is reserved")
        for index, entry in enumerate(self._slots):
            if index != slot and entry.vehicle_id == vehicle_id:
                self._slots[index] = RuntimeVehicleEntry()
        self._slots[slot] = RuntimeVehicleEntry(vehicle_id=vehicle_id)

    def find_by_vehicle_id(self, vehicle_id: int) -> int | None:
        if vehicle_id == 0:
            return None
        for index, entry in enumerate(self._slots):
            if entry.vehicle_id == vehicle_id:
                return index
        return None

    def entry(self, slot: int) -> RuntimeVehicleEntry:
        return self._slots[slot]

    def entry_for(self, vehicle_id: int) -> RuntimeVehicleEntry | None:
        slot = self.find_by_vehicle_id(vehicle_id)
        return None if slot is None else self._slots[slot]

    @property
    def home_vehicle_id(self) -> int:
        return self._slots[HOME_SLOT].vehicle_id

    def vehicle_ids(self) -> list[int]:
        return [entry.vehicle_id for entry in self._slots if not entry.is_empty]

    def mark_telemetry(
        self,
        vehicle_id: int,
        *,
        link_telemetry: bool | None = None,
        fc_telemetry: bool | None = None,
        armed: bool | None = None,
    ) -> bool:
        """Update telemetry flags of *vehicle_id*. Returns ``False`` if not registered."""
        entry = self.entry_for(vehicle_id)
        if entry is None:
            return False
        if link_telemetry is not None:
            entry.got_link_telemetry = link_telemetry
        if fc_telemetry is not None:
            entry.got_fc_telemetry = fc_telemetry
        if armed is not None:
            entry.is_armed = armed
        return True

    def discard(self, vehicle_id: int) -> bool:
        slot = self.find_by_vehicle_id(vehicle_id)
        if slot is None:
            return False
        self._slots[slot] = RuntimeVehicleEntry()
        return True

    def describe(self) -> str:
        parts = []
        for index, entry in enumerate(self._slots):
            if entry.is_empty:
                parts.append(f"[{index}] empty")
            else:
                parts.append(
                    f"[{index}] VID {entry.vehicle_id} "
                    f"(link telemetry: {'yes' if entry.got_link_telemetry else 'no'}, "
                    f"FC telemetry: {'yes' if entry.got_fc_telemetry else 'no'})"
                )
        return ", ".join(parts)
