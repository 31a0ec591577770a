"""Deterministic snapshot diff and merge policy.

This module contains *no* payload parsing. The codec and ingestion
boundary hand it validated, normalized snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass

from pylinksync.models.snapshot import ConfigSnapshot


@dataclass(frozen=True)
class SnapshotDiff:
    """Change signals between the stored and an incoming snapshot."""

    camera_changed: bool = False
    radio_critical: bool = False
    radio_changed: bool = False
    """Any radio field differs. Diagnostic only, never drives behaviour."""
    audio_enabled_changed: bool = False


def camera_changed(current: ConfigSnapshot, incoming: ConfigSnapshot) -> bool:
    """Active camera index differs, or the active camera's detected/forced type differs."""
    if current.current_camera != incoming.current_camera:
        return True
    current_cam = current.active_camera
    incoming_cam = incoming.active_camera
    if current_cam is None or incoming_cam is None:
        return False
    return (
        current_cam.camera_type != incoming_cam.camera_type
        or current_cam.forced_camera_type != incoming_cam.forced_camera_type
    )


def radio_config_changed(current: ConfigSnapshot, incoming: ConfigSnapshot) -> bool:
    return current.radio_links != incoming.radio_links or current.radio_interfaces != incoming.radio_interfaces


def radio_critical_change(current: ConfigSnapshot, incoming: ConfigSnapshot) -> bool:
    """Changes that cannot be applied to a live link.

    Only the radio topology counts: number of links, number of interfaces
    and link frequencies. Capability and frame flags are applied live.
    """
    if current.links_count != incoming.links_count:
        return True
    if current.interfaces_count != incoming.interfaces_count:
        return True
    return any(
        old.frequency_khz != new.frequency_khz
        for old, new in zip(current.radio_links, incoming.radio_links, strict=True)
    )


def diff_snapshots(current: ConfigSnapshot, incoming: ConfigSnapshot) -> SnapshotDiff:
    radio_changed = radio_config_changed(current, incoming)
    return SnapshotDiff(
        camera_changed=camera_changed(current, incoming),
        radio_critical=radio_changed and radio_critical_change(current, incoming),
        radio_changed=radio_changed,
        audio_enabled_changed=current.audio.enabled != incoming.audio.enabled,
    )


def merge_snapshot(current: ConfigSnapshot, incoming: ConfigSnapshot) -> ConfigSnapshot:
    """Apply *incoming* over *current*, keeping the locally sovereign fields.

    Policy:
    - every field comes from *incoming*, except
    - ``observer_only`` and ``developer_mode``, which keep the local value;
    - while observing, the on-screen display block keeps the local value;
    - ``must_sync_from_vehicle`` is cleared: the vehicle just synced.
    """
    update: dict[str, object] = {
        "observer_only": current.observer_only,
        "developer_mode": current.developer_mode,
        "must_sync_from_vehicle": False,
    }
    if current.observer_only:
        update["osd"] = current.osd
    return incoming.model_copy(update=update)
