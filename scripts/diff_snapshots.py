#!/usr/bin/env python3
"""Compare two stored vehicle configuration records and show what changed.

Prints a field-level diff followed by the change signals the controller
derives from the pair (camera, radio, audio) and whether ingesting the
newer record for the home vehicle would rebuild the radio link.

Usage
-----
    python scripts/diff_snapshots.py old.cfg new.cfg
    python scripts/diff_snapshots.py --relay old.cfg new.cfg
    python scripts/diff_snapshots.py --include-stats old.cfg new.cfg
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from pylinksync._constants import format_version
from pylinksync._describe import describe_radio
from pylinksync.codec import decode_snapshot
from pylinksync.exceptions import CorruptSnapshotError
from pylinksync.ingestion.normalize import strip_legacy_relay_flags
from pylinksync.models.snapshot import ConfigSnapshot
from pylinksync.repair import must_repair
from pylinksync.state.policy import diff_snapshots

MISSING = "<missing>"
VALUE_WIDTH = 60
COLUMNS = ("Field", "Old", "New")


def _shorten(value: Any) -> str:
    text = str(value)
    return text if len(text) <= VALUE_WIDTH else text[: VALUE_WIDTH - 3] + "..."


def _flatten(value: Any, path: str, out: dict[str, Any]) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            _flatten(item, f"{path}.{key}" if path else key, out)
    elif isinstance(value, list) and value:
        for index, item in enumerate(value):
            _flatten(item, f"{path}[{index}]", out)
    else:
        out[path] = value


def _field_changes(old: ConfigSnapshot, new: ConfigSnapshot, *, include_stats: bool) -> list[tuple[str, Any, Any]]:
    """Leaf-level changes between two records, keyed by dotted field path."""
    exclude = None if include_stats else {"stats"}
    before: dict[str, Any] = {}
    after: dict[str, Any] = {}
    _flatten(old.model_dump(mode="json", exclude=exclude), "", before)
    _flatten(new.model_dump(mode="json", exclude=exclude), "", after)

    changes = []
    for path in dict.fromkeys([*before, *after]):
        old_value = before.get(path, MISSING)
        new_value = after.get(path, MISSING)
        if old_value != new_value:
            changes.append((path, old_value, new_value))
    return changes


def _load(path: Path) -> ConfigSnapshot:
    try:
        snapshot = decode_snapshot(path.read_bytes())
    except (OSError, CorruptSnapshotError) as exc:
        sys.exit(f"{path}: {exc}")
    return strip_legacy_relay_flags(snapshot)


def _print_table(results: list[tuple[str, Any, Any]]) -> None:
    rows = [(path, _shorten(old_value), _shorten(new_value)) for path, old_value, new_value in results]
    widths = [max(len(title), *(len(row[column]) for row in rows)) for column, title in enumerate(COLUMNS)]

    header = "  ".join(title.ljust(width) for title, width in zip(COLUMNS, widths, strict=True))
    print(header)
    print("─" * len(header))
    for row in rows:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths, strict=True)))


def main() -> None:
    parser = argparse.ArgumentParser(description="Diff two vehicle configuration records.")
    parser.add_argument("old", help="Currently stored record")
    parser.add_argument("new", help="Incoming record")
    parser.add_argument("--relay", action="store_true", help="Treat the vehicle as relayed rather than home")
    parser.add_argument("--include-stats", action="store_true", help="Include usage statistics in the comparison")
    args = parser.parse_args()

    old = _load(Path(args.old))
    new = _load(Path(args.new))

    print(f"Old: {old.label()}  {format_version(old.software_version)}")
    print(f"New: {new.label()}  {format_version(new.software_version)}")
    for line in describe_radio(new):
        print(f"  {line}")
    print()

    results = _field_changes(old, new, include_stats=args.include_stats)

    if results:
        _print_table(results)
        print(f"\n{len(results)} difference(s) found.\n")
    else:
        print("No differences found.\n")

    if old.vehicle_id != new.vehicle_id:
        print(f"Records describe different vehicles ({old.vehicle_id} vs {new.vehicle_id}); no merge would run.")
        return

    diff = diff_snapshots(old, new)
    repair = must_repair(
        radio_critical=diff.radio_critical,
        audio_enabled_changed=diff.audio_enabled_changed,
        is_home_vehicle=not args.relay,
    )
    print(f"camera changed:        {diff.camera_changed}")
    print(f"radio changed:         {diff.radio_changed}")
    print(f"radio critical:        {diff.radio_critical}")
    print(f"audio enabled toggled: {diff.audio_enabled_changed}")
    print(f"link repair:           {'yes' if repair else 'no'}")


if __name__ == "__main__":
    main()
