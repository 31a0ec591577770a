from __future__ import annotations

import pytest

from pylinksync.state.registry import VehicleRegistry


def test_home_and_relay_slots() -> None:
    registry = VehicleRegistry()
    registry.set_home(42)
    registry.set_relay(77)

    assert registry.capacity == 2
    assert len(registry) == 2
    assert registry.home_vehicle_id == 42
    assert registry.find_by_vehicle_id(42) == 0
    assert registry.find_by_vehicle_id(77) == 1
    assert registry.vehicle_ids() == [42, 77]


def test_vehicle_id_occupies_one_slot_only() -> None:
    registry = VehicleRegistry()
    registry.set_home(42)
    registry.set_relay(42)

    assert registry.find_by_vehicle_id(42) == 1
    assert registry.entry(0).is_empty
    assert len(registry) == 1


def test_zero_is_never_registered() -> None:
    registry = VehicleRegistry()
    with pytest.raises(ValueError):
        registry.set_home(0)
    assert registry.find_by_vehicle_id(0) is None
    assert registry.discard(0) is False


def test_mark_telemetry_only_updates_given_flags() -> None:
    registry = VehicleRegistry()
    registry.set_home(42)

    assert registry.mark_telemetry(42, link_telemetry=True, armed=True)
    assert registry.mark_telemetry(42, fc_telemetry=True)
    entry = registry.entry_for(42)
    assert entry is not None
    assert entry.got_link_telemetry and entry.got_fc_telemetry and entry.is_armed
    assert registry.mark_telemetry(99, link_telemetry=True) is False


def test_reset_and_discard() -> None:
    registry = VehicleRegistry()
    registry.set_home(42)
    registry.set_relay(77)

    assert registry.discard(77)
    assert registry.vehicle_ids() == [42]
    registry.reset()
    registry.reset()
    assert len(registry) == 0
    assert registry.home_vehicle_id == 0
    assert "empty" in registry.describe()
