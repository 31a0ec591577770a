"""Radio link repair decision."""

from __future__ import annotations

from pylinksync.state.effects import Effect, Notify, RequestPairingStart, RequestPairingStop, Settle, Severity

REPAIR_NOTICE = "Radio links configuration changed on the vehicle. Updating local radio configuration..."


def must_repair(*, radio_critical: bool, audio_enabled_changed: bool, is_home_vehicle: bool) -> bool:
    """Only the home vehicle drives the local radio, so only it can force a rebuild."""
    return is_home_vehicle and (radio_critical or audio_enabled_changed)


def repair_sequence(vehicle_id: int, settle_delay: float) -> list[Effect]:
    """Effects that tear the pairing down and bring it back up."""
    return [
        Notify(vehicle_id=vehicle_id, message=REPAIR_NOTICE, severity=Severity.WARNING, duration=5.0),
        RequestPairingStop(),
        Settle(seconds=settle_delay),
        RequestPairingStart(),
    ]
