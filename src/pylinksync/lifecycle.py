"""Pairing lifecycle handlers.

Each handler takes the controller context and one event, mutates the
context and returns the effects the transition calls for. All resets are
idempotent, so firing the same transition twice is harmless.

::

    UNPAIRED --BeginPairing--> BEFORE_PAIRING --LinkEstablished--> PAIRED
    PAIRED --TelemetryReceived--> RECEIVING_DATA --LinkLost--> PAIRED
    any --StopPairing--> STOPPING_PAIRING --PairingStopped--> UNPAIRED
"""

from __future__ import annotations

import logging

from pylinksync._describe import describe_radio, describe_relay_mode
from pylinksync.exceptions import SnapshotPersistenceError
from pylinksync.models.snapshot import RelayMode
from pylinksync.state.context import PairingState, SyncContext
from pylinksync.state.effects import (
    AdvisoryKind,
    ApplyDisplayLayout,
    ClearAlerts,
    DismissAdvisories,
    Effect,
    HandlerResult,
)
from pylinksync.state.events import (
    BeginPairing,
    LinkEstablished,
    LinkLost,
    MainVehicleChanged,
    ModalVisibilityChanged,
    PairingStopped,
    RelayModeChanged,
    StopPairing,
    TelemetryReceived,
    VehicleAdded,
    VehicleDeleted,
)

_logger = logging.getLogger(__name__)

_BEGIN_FROM = frozenset({PairingState.UNPAIRED, PairingState.BEFORE_PAIRING})
_LINK_FROM = frozenset({PairingState.BEFORE_PAIRING, PairingState.PAIRED})
_STOPPED_FROM = frozenset({PairingState.STOPPING_PAIRING, PairingState.UNPAIRED})

_RELAY_MODE_MAIN = int(RelayMode.MAIN | RelayMode.IS_RELAY_NODE)


def _ignored(ctx: SyncContext, event_name: str) -> HandlerResult:
    _logger.warning("Ignoring %s while %s", event_name, ctx.state)
    return HandlerResult()


def on_begin_pairing(ctx: SyncContext, event: BeginPairing) -> HandlerResult:
    if ctx.state not in _BEGIN_FROM:
        return _ignored(ctx, "begin pairing")

    _logger.info("Before pairing")
    ctx.registry.reset()
    ctx.flags.clear_overlay_and_alarms()
    ctx.clear_upload()

    current = ctx.current_snapshot
    if current is None:
        _logger.warning("Begin pairing without a current configuration")
    else:
        ctx.registry.set_home(current.vehicle_id)
        relayed_id = current.relay.relayed_vehicle_id
        if current.relay.is_enabled and relayed_id not in (0, current.vehicle_id):
            if ctx.store.find(relayed_id) is not None:
                ctx.registry.set_relay(relayed_id)
            else:
                _logger.info("Relayed VID %s has no known configuration; relay slot left empty", relayed_id)

    ctx.state = PairingState.BEFORE_PAIRING
    _logger.info("Runtime vehicles: %s", ctx.registry.describe())
    return HandlerResult()


def on_link_established(ctx: SyncContext, event: LinkEstablished) -> HandlerResult:
    if ctx.state not in _LINK_FROM:
        return _ignored(ctx, "link established")

    ctx.flags.link_lost = False
    ctx.state = PairingState.PAIRED
    current = ctx.current_snapshot
    if current is None:
        return HandlerResult(effects=[ApplyDisplayLayout(layout_index=0)])
    _logger.info("Paired with %s", current.label())
    return HandlerResult(effects=[ApplyDisplayLayout(layout_index=current.osd.layout, vehicle_id=current.vehicle_id)])


def on_telemetry(ctx: SyncContext, event: TelemetryReceived) -> HandlerResult:
    known = ctx.registry.mark_telemetry(
        event.vehicle_id,
        link_telemetry=event.link_telemetry,
        fc_telemetry=event.fc_telemetry,
        armed=event.armed,
    )
    if not known:
        _logger.debug("Telemetry from unregistered VID %s", event.vehicle_id)
        return HandlerResult()
    if ctx.state != PairingState.PAIRED:
        return HandlerResult()

    _logger.info("Started receiving data from VID %s", event.vehicle_id)
    ctx.state = PairingState.RECEIVING_DATA
    ctx.flags.link_lost = False

    if ctx.sync_on_link_recover:
        ctx.sync_on_link_recover = False
        current = ctx.current_snapshot
        if current is not None:
            ctx.store.put(current.model_copy(update={"must_sync_from_vehicle": True}))
            _logger.info("Settings of %s must be synced from the vehicle", current.label())

    return HandlerResult(effects=[DismissAdvisories(kinds=tuple(AdvisoryKind))])


def on_link_lost(ctx: SyncContext, event: LinkLost) -> HandlerResult:
    ctx.flags.link_lost = True
    if event.resync_on_recover:
        ctx.sync_on_link_recover = True
    if ctx.state == PairingState.RECEIVING_DATA:
        ctx.state = PairingState.PAIRED
    _logger.info("Link lost (resync on recover: %s)", ctx.sync_on_link_recover)
    return HandlerResult()


def on_stop_pairing(ctx: SyncContext, event: StopPairing) -> HandlerResult:
    _logger.info("Before pairing stop (was %s)", ctx.state)
    current = ctx.current_snapshot
    if current is not None and current.relay.is_enabled:
        _logger.info(
            "Switching relay mode of %s from %s to main",
            current.label(),
            describe_relay_mode(current.relay.current_mode),
        )
        updated = current.model_copy(
            update={"relay": current.relay.model_copy(update={"current_mode": _RELAY_MODE_MAIN})}
        )
        try:
            ctx.store.persist(updated)
        except SnapshotPersistenceError:
            _logger.error("Failed to persist relay mode reset for %s", current.label(), exc_info=True)
    ctx.state = PairingState.STOPPING_PAIRING
    return HandlerResult()


def on_pairing_stopped(ctx: SyncContext, event: PairingStopped) -> HandlerResult:
    if ctx.state not in _STOPPED_FROM:
        return _ignored(ctx, "pairing stopped")

    ctx.flags.clear_link_reconfiguration()
    ctx.flags.clear_overlay_and_alarms()
    ctx.registry.reset()
    ctx.state = PairingState.UNPAIRED
    _logger.info("Pairing stopped")
    return HandlerResult(effects=[ClearAlerts()])


def on_main_vehicle_changed(ctx: SyncContext, event: MainVehicleChanged) -> HandlerResult:
    previous = ctx.current_vehicle_id
    ctx.current_vehicle_id = event.vehicle_id
    ctx.flags.clear_overlay_and_alarms()
    ctx.first_connection_to_current = True

    if event.remove_previous_state:
        ctx.registry.reset()
        ctx.clear_upload()
        ctx.update_prompt_shown = False
    elif ctx.registry.home_vehicle_id not in (0, event.vehicle_id):
        ctx.registry.reset()
        if event.vehicle_id:
            ctx.registry.set_home(event.vehicle_id)

    current = ctx.current_snapshot
    if current is None:
        _logger.error("New main vehicle VID %s has no configuration", event.vehicle_id)
    else:
        _logger.info(
            "Main vehicle changed from VID %s to %s (%s radio links)",
            previous,
            current.label(),
            current.links_count,
        )
        for line in describe_radio(current):
            _logger.debug("Main vehicle %s", line)

    effects: list[Effect] = []
    if previous != 0:
        effects.append(ClearAlerts())
    return HandlerResult(effects=effects)


def on_vehicle_added(ctx: SyncContext, event: VehicleAdded) -> HandlerResult:
    _logger.info("Vehicle VID %s added", event.vehicle_id)
    return HandlerResult()


def on_vehicle_deleted(ctx: SyncContext, event: VehicleDeleted) -> HandlerResult:
    ctx.store.remove(event.vehicle_id)
    if ctx.registry.discard(event.vehicle_id):
        _logger.info("Deleted VID %s removed from runtime list", event.vehicle_id)
    if ctx.current_vehicle_id == event.vehicle_id:
        _logger.warning("Deleted VID %s was the main vehicle", event.vehicle_id)
        ctx.current_vehicle_id = 0
    ctx.flags.got_stats_video_bitrate = False
    ctx.flags.got_stats_vehicle_tx = False
    return HandlerResult()


def on_modal_visibility(ctx: SyncContext, event: ModalVisibilityChanged) -> HandlerResult:
    ctx.modal_active = event.visible
    return HandlerResult()


def on_relay_mode_changed(ctx: SyncContext, event: RelayModeChanged) -> HandlerResult:
    current = ctx.current_snapshot
    if current is None:
        _logger.warning("Relay mode changed without a current configuration")
        return HandlerResult()

    if event.mode is not None and event.mode != current.relay.current_mode:
        current = current.model_copy(update={"relay": current.relay.model_copy(update={"current_mode": event.mode})})
        ctx.store.put(current)

    relayed_id = current.relay.relayed_vehicle_id
    _logger.info(
        "New relay mode: %s, main VID: %s, relayed VID: %s",
        describe_relay_mode(current.relay.current_mode),
        current.vehicle_id,
        relayed_id,
    )

    relayed = ctx.store.find(relayed_id)
    if relayed is None:
        return HandlerResult()
    assert ctx.relay_checker is not None  # noqa: S101
    notice = ctx.relay_checker.check(current, relayed)
    return HandlerResult(effects=[notice] if notice is not None else [])
