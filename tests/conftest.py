from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from pylinksync._constants import pack_version
from pylinksync.config import SyncConfig
from pylinksync.models.snapshot import (
    AudioParams,
    CameraParams,
    CameraType,
    ConfigSnapshot,
    RadioCapability,
    RadioInterface,
    RadioLink,
    VideoParams,
    VideoProfile,
)
from pylinksync.state.context import SyncContext
from pylinksync.state.store import ScratchStore, SnapshotStore

HOME_VID = 42

_LINK_CAPS = int(
    RadioCapability.CAN_TX
    | RadioCapability.CAN_RX
    | RadioCapability.CAN_USE_FOR_VIDEO
    | RadioCapability.CAN_USE_FOR_DATA
)


def build_snapshot(
    vehicle_id: int = HOME_VID,
    *,
    version: tuple[int, int, int] = (1, 1, 79),
    links: int = 2,
    width: int = 1280,
    height: int = 720,
    **overrides: Any,
) -> ConfigSnapshot:
    values: dict[str, Any] = {
        "vehicle_id": vehicle_id,
        "name": f"vehicle-{vehicle_id}",
        "software_version": pack_version(*version),
        "radio_links": [
            RadioLink(frequency_khz=5_805_000 + index * 20_000, capability_flags=_LINK_CAPS, radio_flags=0x02)
            for index in range(links)
        ],
        "radio_interfaces": [
            RadioInterface(capability_flags=_LINK_CAPS, type_and_driver=0x010003) for _ in range(links)
        ],
        "cameras": [CameraParams(camera_type=int(CameraType.CSI), name="imx415")],
        "current_camera": 0,
        "audio": AudioParams(has_audio_device=True),
        "video": VideoParams(profiles=[VideoProfile(width=width, height=height)]),
    }
    values.update(overrides)
    return ConfigSnapshot(**values)


@pytest.fixture
def make_snapshot() -> Callable[..., ConfigSnapshot]:
    return build_snapshot


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    return SyncConfig(local_version=(1, 1, 79), scratch_dir=tmp_path / "scratch", repair_settle_delay=0.0)


@pytest.fixture
def ctx(tmp_path: Path, config: SyncConfig) -> SyncContext:
    """Context with vehicle 42 as the current, registered home vehicle."""
    context = SyncContext(
        config=config,
        store=SnapshotStore(tmp_path / "vehicles"),
        scratch=ScratchStore(config.scratch_dir),
    )
    context.store.put(build_snapshot())
    context.current_vehicle_id = HOME_VID
    context.registry.set_home(HOME_VID)
    return context
