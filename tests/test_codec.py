from __future__ import annotations

import json
import struct
import zlib
from collections.abc import Callable

import pytest

from pylinksync._constants import format_version, is_older_version, pack_version, unpack_version
from pylinksync.codec import HEADER_SIZE, decode_snapshot, encode_snapshot, read_header
from pylinksync.exceptions import CorruptSnapshotError
from pylinksync.models.snapshot import ConfigSnapshot, RadioCapability


def _record(body: dict, *, vehicle_id: int, version: int) -> bytes:
    raw = json.dumps(body).encode("utf-8")
    header = struct.pack("<4sHIIII", b"LSCF", 1, version, vehicle_id, len(raw), zlib.crc32(raw) & 0xFFFFFFFF)
    return header + raw


def test_roundtrip_preserves_every_field(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    snapshot = make_snapshot(observer_only=True, developer_mode=True, alarms=1)
    decoded = decode_snapshot(encode_snapshot(snapshot))
    assert decoded == snapshot


def test_header_carries_vehicle_id_and_version(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    snapshot = make_snapshot(vehicle_id=1234, version=(2, 3, 81))
    header = read_header(encode_snapshot(snapshot))
    assert header.vehicle_id == 1234
    assert unpack_version(header.software_version) == (2, 3, 81)


def test_body_uses_camel_case_keys(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    body = json.loads(encode_snapshot(make_snapshot())[HEADER_SIZE:])
    assert "vehicleId" in body
    assert "radioLinks" in body
    assert body["radioLinks"][0]["frequencyKhz"] == 5_805_000


def test_legacy_keys_are_accepted() -> None:
    version = pack_version(1, 0, 70)
    data = _record(
        {"vehicleId": 9, "swVersion": version, "isSpectator": True, "bDeveloperMode": True, "name": None},
        vehicle_id=9,
        version=version,
    )
    snapshot = decode_snapshot(data)
    assert snapshot.observer_only is True
    assert snapshot.developer_mode is True
    assert snapshot.software_version == version
    assert snapshot.name == ""


def test_trailing_bytes_are_ignored(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    snapshot = make_snapshot()
    assert decode_snapshot(encode_snapshot(snapshot) + b"\x00" * 16) == snapshot


@pytest.mark.parametrize(
    "mangle",
    [
        lambda data: data[:10],
        lambda data: b"XXXX" + data[4:],
        lambda data: data[:-5],
        lambda data: data[:-1] + bytes([data[-1] ^ 0xFF]),
        lambda data: data[:4] + struct.pack("<H", 7) + data[6:],
    ],
    ids=["short-header", "bad-magic", "truncated-body", "bad-crc", "unknown-format"],
)
def test_structural_damage_is_rejected(
    make_snapshot: Callable[..., ConfigSnapshot], mangle: Callable[[bytes], bytes]
) -> None:
    with pytest.raises(CorruptSnapshotError):
        decode_snapshot(mangle(encode_snapshot(make_snapshot())))


def test_zero_vehicle_id_body_is_rejected() -> None:
    with pytest.raises(CorruptSnapshotError):
        decode_snapshot(_record({"vehicleId": 0}, vehicle_id=0, version=0))


def test_header_body_vehicle_mismatch_is_rejected() -> None:
    with pytest.raises(CorruptSnapshotError) as excinfo:
        decode_snapshot(_record({"vehicleId": 5}, vehicle_id=6, version=0))
    assert excinfo.value.vehicle_id == 6


def test_unknown_flag_bits_survive_roundtrip(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    snapshot = make_snapshot()
    link = snapshot.radio_links[0].model_copy(update={"capability_flags": 0x8000 | int(RadioCapability.CAN_TX)})
    snapshot = snapshot.model_copy(update={"radio_links": [link]})
    decoded = decode_snapshot(encode_snapshot(snapshot))
    assert decoded.radio_links[0].capability_flags == 0x8001


def test_version_packing() -> None:
    packed = pack_version(1, 5, 78)
    assert packed == (1 << 8) | 5 | (78 << 16)
    assert unpack_version(packed) == (1, 5, 78)
    assert format_version(packed) == "1.5 (b78)"
    with pytest.raises(ValueError):
        pack_version(256, 0, 0)


def test_older_version_compares_build_first() -> None:
    local = pack_version(1, 1, 79)
    assert is_older_version(pack_version(1, 5, 78), local)
    assert not is_older_version(pack_version(1, 0, 80), local)
    assert is_older_version(pack_version(1, 0, 79), local)
    assert not is_older_version(local, local)
