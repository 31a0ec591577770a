"""Binary configuration record encoding/decoding.

Record format (little-endian)::

    Magic:            b"LSCF"   (4 bytes)
    Format version:   uint16    (2 bytes)
    Software version: uint32    (4 bytes, packed major/minor/build)
    Vehicle id:       uint32    (4 bytes)
    Body length:      uint32    (4 bytes)
    Body CRC-32:      uint32    (4 bytes)
    Body:             UTF-8 JSON, camelCase keys

The header repeats the packed version and vehicle id so they can be read
without validating the body.
"""

from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass

from pydantic import ValidationError

from pylinksync.exceptions import CorruptSnapshotError
from pylinksync.models.snapshot import ConfigSnapshot

_logger = logging.getLogger(__name__)

_MAGIC = b"LSCF"
FORMAT_VERSION = 1
_SUPPORTED_FORMAT_VERSIONS = frozenset({1})
_HEADER = struct.Struct("<4sHIIII")
HEADER_SIZE = _HEADER.size


@dataclass(frozen=True)
class RecordHeader:
    """Decoded fixed-size record header."""

    format_version: int
    software_version: int
    vehicle_id: int
    body_length: int
    body_crc: int


def read_header(data: bytes) -> RecordHeader:
    """Parse and sanity-check the record header."""
    if len(data) < HEADER_SIZE:
        raise CorruptSnapshotError(f"Record too short: {len(data)} bytes, header needs {HEADER_SIZE}")

    magic, fmt, sw_version, vehicle_id, body_length, body_crc = _HEADER.unpack_from(data, 0)
    if magic != _MAGIC:
        raise CorruptSnapshotError(f"Bad magic: expected {_MAGIC!r}, got {magic!r}")
    if fmt not in _SUPPORTED_FORMAT_VERSIONS:
        raise CorruptSnapshotError(f"Unsupported record format version: {fmt}", vehicle_id=vehicle_id)
    return RecordHeader(
        format_version=fmt,
        software_version=sw_version,
        vehicle_id=vehicle_id,
        body_length=body_length,
        body_crc=body_crc,
    )


def encode_snapshot(snapshot: ConfigSnapshot) -> bytes:
    """Serialize *snapshot* into a binary record."""
    body = snapshot.model_dump_json(by_alias=True).encode("utf-8")
    header = _HEADER.pack(
        _MAGIC,
        FORMAT_VERSION,
        snapshot.software_version,
        snapshot.vehicle_id,
        len(body),
        zlib.crc32(body) & 0xFFFFFFFF,
    )
    return header + body


def decode_snapshot(data: bytes) -> ConfigSnapshot:
    """Parse a binary record into a :class:`ConfigSnapshot`.

    Raises :class:`CorruptSnapshotError` for any structural or validation
    failure. Trailing bytes after the declared body are ignored.
    """
    header = read_header(data)
    end = HEADER_SIZE + header.body_length
    if len(data) < end:
        raise CorruptSnapshotError(
            f"Truncated record: body declares {header.body_length} bytes, got {len(data) - HEADER_SIZE}",
            vehicle_id=header.vehicle_id,
        )

    body = bytes(data[HEADER_SIZE:end])
    crc = zlib.crc32(body) & 0xFFFFFFFF
    if crc != header.body_crc:
        raise CorruptSnapshotError(
            f"Checksum mismatch: header {header.body_crc:#010x}, body {crc:#010x}",
            vehicle_id=header.vehicle_id,
        )

    try:
        snapshot = ConfigSnapshot.model_validate_json(body)
    except ValidationError as exc:
        _logger.debug("Record body failed validation: %s", exc)
        raise CorruptSnapshotError(
            f"Invalid record body ({exc.error_count()} error(s))",
            vehicle_id=header.vehicle_id,
        ) from exc

    if snapshot.vehicle_id != header.vehicle_id:
        raise CorruptSnapshotError(
            f"Header vehicle id {header.vehicle_id} does not match body vehicle id {snapshot.vehicle_id}",
            vehicle_id=header.vehicle_id,
        )
    if snapshot.software_version != header.software_version:
        raise CorruptSnapshotError(
            f"Header version {header.software_version} does not match body version {snapshot.software_version}",
            vehicle_id=header.vehicle_id,
        )
    return snapshot
