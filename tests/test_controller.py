from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pylinksync.codec import encode_snapshot
from pylinksync.config import SyncConfig
from pylinksync.controller import ListenerHook, SyncController
from pylinksync.models.results import IngestOutcome
from pylinksync.models.snapshot import ConfigSnapshot
from pylinksync.state.context import PairingState
from pylinksync.state.effects import AdvisoryKind, ModalDescriptor, ReloadReason, Severity
from pylinksync.state.events import (
    BeginPairing,
    LinkEstablished,
    MainVehicleChanged,
    PairingStopped,
    StopPairing,
    TelemetryReceived,
    VehicleAdded,
    VehicleDeleted,
)
from pylinksync.state.store import SnapshotStore


class _RecordingCallbacks:
    """Records collaborator calls; pairing requests feed events back like a real dispatcher."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.controller: SyncController | None = None

    def notify(self, vehicle_id: int, message: str, severity: Severity, duration: float | None) -> None:
        self.calls.append(("notify", vehicle_id, message, severity))

    def show_modal(self, descriptor: ModalDescriptor) -> None:
        self.calls.append(("show_modal", descriptor.kind))

    def broadcast_reload(self, reason: ReloadReason, vehicle_id: int) -> None:
        self.calls.append(("broadcast_reload", reason, vehicle_id))

    def request_pairing_stop(self) -> None:
        self.calls.append(("request_pairing_stop",))
        if self.controller is not None:
            self.controller.post(StopPairing())
            self.controller.post(PairingStopped())

    def request_pairing_start(self) -> None:
        self.calls.append(("request_pairing_start",))
        if self.controller is not None:
            self.controller.post(BeginPairing())

    def apply_display_layout(self, layout_index: int) -> None:
        self.calls.append(("apply_display_layout", layout_index))

    def dismiss_advisories(self, kinds: tuple[AdvisoryKind, ...]) -> None:
        self.calls.append(("dismiss_advisories", kinds))

    def clear_alerts(self) -> None:
        self.calls.append(("clear_alerts",))

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def store(make_snapshot: Callable[..., ConfigSnapshot]) -> SnapshotStore:
    snapshots = SnapshotStore()
    snapshots.put(make_snapshot())
    return snapshots


def _controller(
    tmp_path: Path, store: SnapshotStore, callbacks: _RecordingCallbacks, sleeps: list[float]
) -> SyncController:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    config = SyncConfig(local_version=(1, 1, 79), scratch_dir=tmp_path / "scratch", repair_settle_delay=0.5)
    controller = SyncController(config, callbacks, store=store, sleep=_sleep)
    callbacks.controller = controller
    return controller


async def _pair(controller: SyncController) -> None:
    await controller.dispatch(MainVehicleChanged(vehicle_id=42))
    await controller.dispatch(BeginPairing())
    await controller.dispatch(LinkEstablished())
    await controller.dispatch(TelemetryReceived(vehicle_id=42))


@pytest.mark.asyncio
async def test_pairing_effects_reach_callbacks(tmp_path: Path, store: SnapshotStore) -> None:
    callbacks = _RecordingCallbacks()
    async with _controller(tmp_path, store, callbacks, []) as controller:
        await _pair(controller)

    assert controller.state == PairingState.RECEIVING_DATA
    assert callbacks.calls == [
        ("apply_display_layout", 0),
        ("dismiss_advisories", tuple(AdvisoryKind)),
    ]


@pytest.mark.asyncio
async def test_ingest_returns_outcome_and_broadcasts(
    tmp_path: Path, store: SnapshotStore, make_snapshot: Callable[..., ConfigSnapshot]
) -> None:
    callbacks = _RecordingCallbacks()
    async with _controller(tmp_path, store, callbacks, []) as controller:
        await _pair(controller)
        callbacks.calls.clear()
        result = await controller.ingest(42, encode_snapshot(make_snapshot(name="renamed")))

    assert result.outcome == IngestOutcome.ACCEPTED
    assert controller.current_snapshot is not None
    assert controller.current_snapshot.name == "renamed"
    assert callbacks.names() == ["notify", "broadcast_reload"]
    assert callbacks.calls[-1] == ("broadcast_reload", ReloadReason.SYNCHRONISED_SETTINGS_FROM_VEHICLE, 42)


@pytest.mark.asyncio
async def test_repair_sequence_runs_in_order(
    tmp_path: Path, store: SnapshotStore, make_snapshot: Callable[..., ConfigSnapshot]
) -> None:
    callbacks = _RecordingCallbacks()
    sleeps: list[float] = []
    async with _controller(tmp_path, store, callbacks, sleeps) as controller:
        await _pair(controller)
        callbacks.calls.clear()
        result = await controller.ingest(42, encode_snapshot(make_snapshot(links=3)))
        assert callbacks.names()[-2:] == ["request_pairing_stop", "request_pairing_start"]
        assert controller.state == PairingState.RECEIVING_DATA
        await controller.drain()

    assert result.outcome == IngestOutcome.ACCEPTED_REQUIRES_REPAIR
    assert sleeps == [0.5]
    assert callbacks.names()[:4] == ["notify", "notify", "request_pairing_stop", "request_pairing_start"]
    assert callbacks.calls[1][3] == Severity.WARNING
    assert callbacks.names()[-1] == "clear_alerts"
    assert controller.state == PairingState.BEFORE_PAIRING
    assert controller.registry.vehicle_ids() == [42]


@pytest.mark.asyncio
async def test_posted_events_wait_for_current_dispatch(tmp_path: Path, store: SnapshotStore) -> None:
    callbacks = _RecordingCallbacks()
    controller = _controller(tmp_path, store, callbacks, [])
    await controller.dispatch(MainVehicleChanged(vehicle_id=42))

    task = controller.post(BeginPairing())
    assert controller.state == PairingState.UNPAIRED
    await controller.drain()

    assert task.done()
    assert controller.state == PairingState.BEFORE_PAIRING


@pytest.mark.asyncio
async def test_listeners_run_in_registration_order(tmp_path: Path, store: SnapshotStore) -> None:
    controller = _controller(tmp_path, store, _RecordingCallbacks(), [])
    seen: list[tuple[str, int]] = []

    def _failing(vehicle_id: int) -> None:
        raise RuntimeError("listener bug")

    def _second(vehicle_id: int) -> None:
        seen.append(("second", vehicle_id))

    controller.add_listener(ListenerHook.VEHICLE_ADDED, lambda vid: seen.append(("first", vid)))
    controller.add_listener(ListenerHook.VEHICLE_ADDED, _failing)
    controller.add_listener(ListenerHook.VEHICLE_ADDED, _second)
    controller.add_listener(ListenerHook.VEHICLE_DELETED, _second)

    await controller.dispatch(VehicleAdded(vehicle_id=5))
    controller.remove_listener(ListenerHook.VEHICLE_DELETED, _second)
    controller.remove_listener(ListenerHook.VEHICLE_DELETED, _second)
    await controller.dispatch(VehicleDeleted(vehicle_id=5))

    assert seen == [("first", 5), ("second", 5)]


@pytest.mark.asyncio
async def test_main_vehicle_listener_receives_new_id(
    tmp_path: Path, store: SnapshotStore, make_snapshot: Callable[..., ConfigSnapshot]
) -> None:
    store.put(make_snapshot(vehicle_id=77))
    controller = _controller(tmp_path, store, _RecordingCallbacks(), [])
    changes: list[int] = []
    controller.add_listener(ListenerHook.MAIN_VEHICLE_CHANGED, changes.append)

    await controller.dispatch(MainVehicleChanged(vehicle_id=42))
    await controller.dispatch(MainVehicleChanged(vehicle_id=77))

    assert changes == [42, 77]
    assert controller.context.current_vehicle_id == 77


@pytest.mark.asyncio
async def test_context_manager_loads_stored_snapshots(
    tmp_path: Path, make_snapshot: Callable[..., ConfigSnapshot]
) -> None:
    SnapshotStore(tmp_path / "vehicles").persist(make_snapshot(vehicle_id=9))
    store = SnapshotStore(tmp_path / "vehicles")

    async with _controller(tmp_path, store, _RecordingCallbacks(), []) as controller:
        assert 9 in controller.store


@pytest.mark.asyncio
async def test_unknown_event_type_is_refused(tmp_path: Path, store: SnapshotStore) -> None:
    controller = _controller(tmp_path, store, _RecordingCallbacks(), [])
    with pytest.raises(TypeError):
        await controller.dispatch(object())  # type: ignore[arg-type]


class _FailingCallbacks(_RecordingCallbacks):
    def clear_alerts(self) -> None:
        raise RuntimeError("alert surface unavailable")


@pytest.mark.asyncio
async def test_posted_event_failure_is_logged(
    tmp_path: Path, store: SnapshotStore, caplog: pytest.LogCaptureFixture
) -> None:
    callbacks = _FailingCallbacks()
    controller = _controller(tmp_path, store, callbacks, [])
    await _pair(controller)

    with caplog.at_level(logging.ERROR, logger="pylinksync.controller"):
        controller.post(StopPairing())
        failing = controller.post(PairingStopped())
        await controller.drain()

    assert isinstance(failing.exception(), RuntimeError)
    errors = [record for record in caplog.records if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "PairingStopped" in errors[0].getMessage()
    assert errors[0].exc_info is not None and errors[0].exc_info[0] is RuntimeError
