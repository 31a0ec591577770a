"""Normalization helpers.

Centralizes input slicing and the fix-ups applied to snapshots sent by
older vehicle software.
"""

from __future__ import annotations

import logging

from pylinksync._constants import RELAY_FLAGS_FIXED_BUILD
from pylinksync.models.snapshot import ConfigSnapshot, RadioCapability

_logger = logging.getLogger(__name__)


def slice_payload(data: bytes, length: int | None) -> bytes | None:
    """Return the first *length* bytes of *data*.

    ``None`` means "use the whole buffer". A negative length or one that
    exceeds the buffer yields ``None``.
    """
    if length is None:
        return bytes(data)
    if length < 0 or length > len(data):
        return None
    return bytes(data[:length])


def needs_relay_flag_fix(snapshot: ConfigSnapshot) -> bool:
    return snapshot.build < RELAY_FLAGS_FIXED_BUILD


def strip_legacy_relay_flags(snapshot: ConfigSnapshot) -> ConfigSnapshot:
    """Clear the "used for relay" bit on every link and interface of old vehicles.

    Vehicles before build 79 set the bit incorrectly. Newer snapshots are
    returned unchanged.
    """
    if not needs_relay_flag_fix(snapshot):
        return snapshot

    _logger.info(
        "Snapshot for VID %s is from build %s (< %s); removing relay capability flags",
        snapshot.vehicle_id,
        snapshot.build,
        RELAY_FLAGS_FIXED_BUILD,
    )
    mask = ~int(RadioCapability.USED_FOR_RELAY)
    links = [
        link.model_copy(update={"capability_flags": link.capability_flags & mask}) for link in snapshot.radio_links
    ]
    interfaces = [
        iface.model_copy(update={"capability_flags": iface.capability_flags & mask})
        for iface in snapshot.radio_interfaces
    ]
    return snapshot.model_copy(update={"radio_links": links, "radio_interfaces": interfaces})
