from __future__ import annotations

from collections.abc import Callable

from pylinksync._describe import (
    describe_capabilities,
    describe_radio,
    describe_relay_mode,
    format_frequency,
    summarize_for_log,
)
from pylinksync.models.snapshot import ConfigSnapshot, RadioCapability, RelayMode


def test_describe_flags_names_known_bits_and_leftovers() -> None:
    value = int(RadioCapability.CAN_TX | RadioCapability.USED_FOR_RELAY) | 0x100
    assert describe_capabilities(value) == "CAN_TX|USED_FOR_RELAY|0x100"
    assert describe_capabilities(0) == "none"
    assert describe_relay_mode(int(RelayMode.MAIN | RelayMode.IS_RELAY_NODE)) == "MAIN|IS_RELAY_NODE"


def test_format_frequency() -> None:
    assert format_frequency(5_805_000) == "5.805 GHz"
    assert format_frequency(433_000) == "433.0 MHz"


def test_describe_radio_one_line_per_link(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    lines = describe_radio(make_snapshot(links=3))
    assert len(lines) == 3
    assert lines[0].startswith("radio link 1: 5.805 GHz")
    assert "CAN_USE_FOR_VIDEO" in lines[0]


def test_summarize_for_log_hides_payload_bytes(make_snapshot: Callable[..., ConfigSnapshot]) -> None:
    summary = summarize_for_log({"data": b"\x00" * 64, "snapshot": make_snapshot(), "note": "x" * 600})

    assert summary["data"] == "<bytes:64b>"
    assert summary["snapshot"]["vehicle"] == "vehicle-42 (VID 42)"
    assert summary["snapshot"]["version"] == "1.1 (b79)"
    assert summary["snapshot"]["relay"] == "off"
    assert "<truncated>" in summary["note"]
