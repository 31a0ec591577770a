"""Configuration snapshot ingestion.

This module owns the path from "raw payload received" to "stored
snapshot plus side effects":

- persist the raw bytes to the scratch copies
- decode them into a :class:`ConfigSnapshot`
- normalize snapshots from older vehicle software
- route foreign snapshots straight to the store
- diff, merge and persist home/relay snapshots
- decide between a live reload and a link repair

Every failure is turned into an :class:`IngestOutcome`; nothing here
raises into the dispatcher.
"""

from __future__ import annotations

import logging

from pylinksync._constants import INTERFACE_DRIVER_MASK, format_version, is_older_version
from pylinksync._describe import describe_radio, summarize_for_log
from pylinksync.codec import decode_snapshot
from pylinksync.exceptions import CorruptSnapshotError, SnapshotPersistenceError, UploadSegmentError
from pylinksync.ingestion.normalize import slice_payload, strip_legacy_relay_flags
from pylinksync.ingestion.upload import add_segment, assemble
from pylinksync.models.results import IngestOutcome, IngestResult
from pylinksync.models.snapshot import CameraType, ConfigSnapshot, VehicleAlarm
from pylinksync.repair import must_repair, repair_sequence
from pylinksync.state.context import SyncContext
from pylinksync.state.effects import (
    BroadcastReload,
    Effect,
    HandlerResult,
    ModalDescriptor,
    Notify,
    ReloadReason,
    Severity,
    ShowModal,
)
from pylinksync.state.events import SettingsSegmentReceived
from pylinksync.state.policy import diff_snapshots, merge_snapshot

_logger = logging.getLogger(__name__)

UPDATE_MODAL_KIND = "update_vehicle"


def _reject(outcome: IngestOutcome, vehicle_id: int, reason: str, effects: list[Effect] | None = None) -> HandlerResult:
    return HandlerResult(
        effects=effects or [],
        result=IngestResult(outcome=outcome, vehicle_id=vehicle_id, reason=reason),
    )


def ingest_settings(
    ctx: SyncContext,
    vehicle_id: int,
    data: bytes,
    *,
    length: int | None = None,
    unsolicited: bool = False,
) -> HandlerResult:
    """Ingest a raw configuration payload received for *vehicle_id*."""
    _logger.info(
        "Received settings for VID %s (%s, expected: %s)",
        vehicle_id,
        summarize_for_log(data),
        "no" if unsolicited else "yes",
    )

    if vehicle_id == 0:
        _logger.info("Ignoring settings for reserved VID 0")
        return _reject(IngestOutcome.INPUT_REJECTED, vehicle_id, "vehicle id 0 is reserved")

    if ctx.current_snapshot is None:
        _logger.info("No current configuration; ignoring received settings")
        return _reject(IngestOutcome.INPUT_REJECTED, vehicle_id, "no current configuration")

    payload = slice_payload(data, length)
    if payload is None:
        _logger.warning("Declared length %s does not fit the %s byte buffer", length, len(data))
        return _reject(IngestOutcome.INPUT_REJECTED, vehicle_id, "declared length exceeds buffer")

    slot = ctx.registry.find_by_vehicle_id(vehicle_id)
    if slot is None:
        _logger.warning(
            "Settings for VID %s who is not in the runtime list (%s); ignoring",
            vehicle_id,
            ctx.registry.describe(),
        )
        return _reject(IngestOutcome.UNKNOWN_VEHICLE, vehicle_id, "vehicle not registered")

    stored = ctx.store.find(vehicle_id)
    if stored is None:
        _logger.warning("Settings for VID %s (slot %s) without a stored snapshot; ignoring", vehicle_id, slot)
        return _reject(IngestOutcome.UNKNOWN_VEHICLE, vehicle_id, "no stored snapshot for vehicle")

    _logger.debug(
        "Found VID %s at slot %s (%s current vehicle)",
        vehicle_id,
        slot,
        "is" if vehicle_id == ctx.current_vehicle_id else "not",
    )

    try:
        ctx.scratch.write(payload)
        incoming = decode_snapshot(ctx.scratch.read())
    except SnapshotPersistenceError:
        _logger.error("Failed to save received vehicle configuration to scratch storage", exc_info=True)
        return _reject(
            IngestOutcome.PERSISTENCE_ERROR,
            vehicle_id,
            "scratch write failed",
            [Notify(vehicle_id, "Failed to process received vehicle settings.", Severity.ERROR)],
        )
    except CorruptSnapshotError as exc:
        _logger.warning("Received invalid vehicle configuration for VID %s: %s", vehicle_id, exc)
        return _reject(
            IngestOutcome.CORRUPT_SNAPSHOT,
            vehicle_id,
            str(exc),
            [Notify(vehicle_id, "Received invalid vehicle configuration.", Severity.ERROR)],
        )

    incoming = strip_legacy_relay_flags(incoming)
    _log_incoming(incoming)

    if incoming.vehicle_id != vehicle_id:
        return _store_foreign(ctx, vehicle_id, incoming)

    return _apply_update(ctx, stored, incoming, unsolicited=unsolicited)


def ingest_segment(ctx: SyncContext, event: SettingsSegmentReceived) -> HandlerResult:
    """Collect one upload segment; ingest the payload once all segments arrived."""
    try:
        ctx.upload = add_segment(ctx.upload, event, max_segments=ctx.config.max_upload_segments)
    except UploadSegmentError as exc:
        _logger.warning("Dropping upload segment for VID %s: %s", event.vehicle_id, exc)
        return HandlerResult()

    if not ctx.upload.is_complete:
        _logger.debug(
            "Upload %s: %s/%s segments",
            ctx.upload.file_id,
            ctx.upload.received_count,
            ctx.upload.total_segments,
        )
        return HandlerResult()

    payload = assemble(ctx.upload)
    _logger.info("Upload %s (%s) complete, %s bytes", ctx.upload.file_id, ctx.upload.filename or "-", len(payload))
    ctx.clear_upload()
    return ingest_settings(ctx, event.vehicle_id, payload, unsolicited=event.unsolicited)


def _log_incoming(snapshot: ConfigSnapshot) -> None:
    _logger.debug("Received snapshot: %s", summarize_for_log(snapshot))
    for line in describe_radio(snapshot):
        _logger.debug("Received %s", line)


def _store_foreign(ctx: SyncContext, target_vehicle_id: int, incoming: ConfigSnapshot) -> HandlerResult:
    """Snapshot for another vehicle than the one it was sent for: store it as-is."""
    if ctx.store.find(incoming.vehicle_id) is None:
        _logger.warning(
            "Settings sent for VID %s describe unknown VID %s; ignoring",
            target_vehicle_id,
            incoming.vehicle_id,
        )
        return _reject(IngestOutcome.UNKNOWN_VEHICLE, target_vehicle_id, "foreign vehicle not known")

    persisted = _persist(ctx, incoming)
    return HandlerResult(
        effects=[Notify(incoming.vehicle_id, "Received vehicle settings.", Severity.SUCCESS)],
        result=IngestResult(
            outcome=IngestOutcome.STORED_FOREIGN,
            vehicle_id=target_vehicle_id,
            snapshot_vehicle_id=incoming.vehicle_id,
            persisted=persisted,
        ),
    )


def _persist(ctx: SyncContext, snapshot: ConfigSnapshot) -> bool:
    try:
        ctx.store.persist(snapshot)
    except SnapshotPersistenceError:
        _logger.error("Failed to persist configuration for VID %s", snapshot.vehicle_id, exc_info=True)
        return False
    return True


def _apply_update(
    ctx: SyncContext,
    stored: ConfigSnapshot,
    incoming: ConfigSnapshot,
    *,
    unsolicited: bool,
) -> HandlerResult:
    vehicle_id = stored.vehicle_id
    is_home = vehicle_id == ctx.current_vehicle_id
    effects: list[Effect] = []

    diff = diff_snapshots(stored, incoming)
    _logger.info(
        "VID %s: camera changed: %s, radio changed: %s, radio critical: %s, audio toggled: %s",
        vehicle_id,
        diff.camera_changed,
        diff.radio_changed,
        diff.radio_critical,
        diff.audio_enabled_changed,
    )

    merged = merge_snapshot(stored, incoming)
    if merged.observer_only:
        _logger.info("VID %s is observed only; keeping local display layout", vehicle_id)

    persisted = _persist(ctx, merged)
    if not persisted:
        effects.append(Notify(vehicle_id, "Failed to save received vehicle settings.", Severity.ERROR))

    effects.append(
        Notify(
            vehicle_id,
            "Received vehicle settings." if unsolicited else "Got vehicle settings.",
            Severity.SUCCESS,
            ctx.config.settings_notice_duration,
        )
    )

    outdated = is_older_version(merged.software_version, ctx.config.packed_local_version)
    if outdated:
        effects.extend(_update_advisories(ctx, merged))

    effects.extend(post_merge_advisories(merged, is_home=is_home))

    if is_home and ctx.first_connection_to_current:
        ctx.first_connection_to_current = False
        _logger.info(
            "First sync with VID %s: on time %02d:%02d, total flights: %s",
            vehicle_id,
            merged.stats.current_on_time // 60,
            merged.stats.current_on_time % 60,
            merged.stats.total_flights,
        )

    repair = must_repair(
        radio_critical=diff.radio_critical,
        audio_enabled_changed=diff.audio_enabled_changed,
        is_home_vehicle=is_home,
    )
    if repair:
        _logger.info("Critical radio change on VID %s; restarting pairing", vehicle_id)
        effects.extend(repair_sequence(vehicle_id, ctx.config.repair_settle_delay))
        outcome = IngestOutcome.ACCEPTED_REQUIRES_REPAIR
    else:
        _logger.debug("No critical radio change on VID %s; notifying components to reload", vehicle_id)
        effects.append(BroadcastReload(ReloadReason.SYNCHRONISED_SETTINGS_FROM_VEHICLE, vehicle_id))
        outcome = IngestOutcome.ACCEPTED

    return HandlerResult(
        effects=effects,
        result=IngestResult(
            outcome=outcome,
            vehicle_id=vehicle_id,
            snapshot_vehicle_id=vehicle_id,
            camera_changed=diff.camera_changed,
            radio_critical=diff.radio_critical,
            radio_changed=diff.radio_changed,
            audio_enabled_changed=diff.audio_enabled_changed,
            version_outdated=outdated,
            persisted=persisted,
        ),
    )


def _update_advisories(ctx: SyncContext, snapshot: ConfigSnapshot) -> list[Effect]:
    local = ctx.config.packed_local_version
    message = (
        f"Vehicle has version {format_version(snapshot.software_version)} and your controller "
        f"{format_version(local)}. You should update your vehicle."
    )
    _logger.info("VID %s runs older software: %s", snapshot.vehicle_id, message)
    effects: list[Effect] = [
        Notify(snapshot.vehicle_id, message, Severity.WARNING, ctx.config.update_advisory_duration)
    ]

    entry = ctx.registry.entry_for(snapshot.vehicle_id)
    armed = entry is not None and entry.got_fc_telemetry and entry.is_armed
    if armed or ctx.modal_active or ctx.update_prompt_shown:
        return effects

    ctx.update_prompt_shown = True
    effects.append(
        ShowModal(
            ModalDescriptor(
                kind=UPDATE_MODAL_KIND,
                title="Update available",
                message=message,
                vehicle_id=snapshot.vehicle_id,
            )
        )
    )
    return effects


def post_merge_advisories(snapshot: ConfigSnapshot, *, is_home: bool) -> list[Notify]:
    """Hardware warnings worth surfacing after a vehicle's settings were stored."""
    notices: list[Notify] = []
    vehicle_id = snapshot.vehicle_id

    if is_home:
        unsupported = sum(
            1 for iface in snapshot.radio_interfaces if iface.type_and_driver & INTERFACE_DRIVER_MASK == 0
        )
        if unsupported == snapshot.interfaces_count:
            notices.append(
                Notify(vehicle_id, "No radio interface on your vehicle is fully supported.", Severity.ERROR, 6.0)
            )
        elif unsupported > 0:
            notices.append(
                Notify(
                    vehicle_id,
                    "Some radio interfaces on your vehicle are not fully supported.",
                    Severity.WARNING,
                    6.0,
                )
            )

    if snapshot.alarms & VehicleAlarm.UNSUPPORTED_USB_SERIAL:
        notices.append(
            Notify(
                vehicle_id,
                "Your vehicle has an unsupported USB to Serial adapter. "
                "Use brand name serial adapters or ones with CP2102 chipset. "
                "The ones with 340 chipset are not compatible.",
                Severity.ERROR,
            )
        )

    if snapshot.audio.enabled and not snapshot.audio.has_audio_device:
        notices.append(
            Notify(vehicle_id, "Your vehicle has audio enabled but no audio capture device.", Severity.ERROR)
        )

    for index, camera in enumerate(snapshot.cameras):
        if camera.forced_camera_type in (CameraType.NONE, camera.camera_type):
            continue
        detected = CameraType(camera.camera_type).name
        forced = CameraType(camera.forced_camera_type).name
        prefix = f"Your camera {index + 1}" if snapshot.camera_count > 1 else "Your camera"
        notices.append(
            Notify(
                vehicle_id,
                f"{prefix} is autodetected as {detected} but you forced it to work as {forced}.",
                Severity.WARNING,
            )
        )
    return notices
