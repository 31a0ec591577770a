"""Helpers for readable debug logging.

Radio flags are logged as names rather than raw integers, and payload
bytes are summarized instead of dumped.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from typing import Any

from pylinksync._constants import format_version
from pylinksync.models.snapshot import ConfigSnapshot, RadioCapability, RadioFrameFlag, RelayMode


def describe_flags(flag_cls: type[enum.IntFlag], value: int) -> str:
    """Render *value* as ``NAME|NAME`` using the members of *flag_cls*."""
    if value == 0:
        return "none"
    names: list[str] = []
    known = 0
    for member in flag_cls:
        if member.value and (value & member.value) == member.value:
            names.append(str(member.name))
            known |= member.value
    leftover = value & ~known
    if leftover:
        names.append(f"{leftover:#x}")
    return "|".join(names)


def describe_capabilities(value: int) -> str:
    return describe_flags(RadioCapability, value)


def describe_frame_flags(value: int) -> str:
    return describe_flags(RadioFrameFlag, value)


def describe_relay_mode(value: int) -> str:
    return describe_flags(RelayMode, value)


def format_frequency(khz: int) -> str:
    if khz >= 1_000_000:
        return f"{khz / 1_000_000:.3f} GHz"
    return f"{khz / 1000:.1f} MHz"


def describe_radio(snapshot: ConfigSnapshot) -> list[str]:
    """One log line per radio link of *snapshot*."""
    lines: list[str] = []
    for index, link in enumerate(snapshot.radio_links, start=1):
        lines.append(
            f"radio link {index}: {format_frequency(link.frequency_khz)}, "
            f"capabilities: {describe_capabilities(link.capability_flags)}, "
            f"radio flags: {describe_frame_flags(link.radio_flags)}"
        )
    return lines


def summarize_snapshot(snapshot: ConfigSnapshot) -> dict[str, Any]:
    """Compact dict of the fields that matter when reading sync logs."""
    return {
        "vehicle": snapshot.label(),
        "version": format_version(snapshot.software_version),
        "links": snapshot.links_count,
        "interfaces": snapshot.interfaces_count,
        "camera": snapshot.current_camera,
        "audio": snapshot.audio.enabled,
        "osd_layout": snapshot.osd.layout,
        "relay": describe_relay_mode(snapshot.relay.current_mode) if snapshot.relay.is_enabled else "off",
        "observer_only": snapshot.observer_only,
        "developer_mode": snapshot.developer_mode,
    }


def summarize_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, ConfigSnapshot):
        return summarize_snapshot(value)

    if isinstance(value, Mapping):
        return {str(k): summarize_for_log(v, max_string=max_string, _depth=_depth + 1) for k, v in value.items()}

    if isinstance(value, Sequence):
        return [summarize_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
