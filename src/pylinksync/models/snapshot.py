"""Vehicle configuration snapshot model.

A :class:`ConfigSnapshot` is the controller's copy of everything a vehicle
reports about itself: radio topology, cameras, audio, on-screen display,
relaying, video profiles, software version and usage statistics.
"""

from __future__ import annotations

import enum
from typing import ClassVar

from pydantic import Field, field_validator

from pylinksync._constants import version_build
from pylinksync.models._base import LinkSyncBaseModel, LinkSyncEnum

MAX_VEHICLE_ID = 0xFFFFFFFF


class RadioCapability(enum.IntFlag):
    """Capability bits carried by radio links and radio interfaces."""

    CAN_TX = 0x01
    CAN_RX = 0x02
    CAN_USE_FOR_VIDEO = 0x04
    CAN_USE_FOR_DATA = 0x08
    USED_FOR_RELAY = 0x10
    DISABLED = 0x20
    HIGH_CAPACITY = 0x40


class RadioFrameFlag(enum.IntFlag):
    """Frame-level modulation flags of a radio link."""

    LEGACY = 0x01
    HT = 0x02
    SHORT_GI = 0x04
    LDPC = 0x08
    STBC = 0x10
    ADAPTIVE = 0x20


class RelayMode(enum.IntFlag):
    """Relay mode bits."""

    NONE = 0x00
    MAIN = 0x01
    REMOTE = 0x02
    PIP_MAIN = 0x04
    PIP_REMOTE = 0x08
    IS_RELAY_NODE = 0x10


class VehicleAlarm(enum.IntFlag):
    """Persistent alarms a vehicle reports in its configuration."""

    NONE = 0
    UNSUPPORTED_USB_SERIAL = 0x01
    LOW_STORAGE = 0x02
    CPU_OVERLOAD = 0x04


class CameraType(LinkSyncEnum):
    """Detected or forced camera hardware type."""

    UNKNOWN = -1
    NONE = 0
    CSI = 1
    HDMI = 2
    USB = 3
    IP = 4
    OPENIPC = 5


class RadioLink(LinkSyncBaseModel):
    frequency_khz: int = Field(default=0, ge=0)
    capability_flags: int = Field(default=0, ge=0)
    radio_flags: int = Field(default=0, ge=0)


class RadioInterface(LinkSyncBaseModel):
    capability_flags: int = Field(default=0, ge=0)
    type_and_driver: int = Field(default=0, ge=0)
    """Packed interface card type (low bytes) and driver id (bits 16-23)."""


class CameraParams(LinkSyncBaseModel):
    camera_type: int = int(CameraType.NONE)
    forced_camera_type: int = int(CameraType.NONE)
    name: str = ""


class AudioParams(LinkSyncBaseModel):
    enabled: bool = False
    has_audio_device: bool = False
    device_index: int = 0
    volume: int = Field(default=100, ge=0, le=100)


class OsdParams(LinkSyncBaseModel):
    """On-screen display settings: active layout plus per-layout preference words."""

    layout: int = Field(default=0, ge=0)
    preferences: list[int] = Field(default_factory=list)


class RelayParams(LinkSyncBaseModel):
    enabled_on_link_id: int = Field(default=-1, ge=-1)
    """Radio link carrying the relay, ``-1`` when relaying is disabled."""
    relayed_vehicle_id: int = Field(default=0, ge=0, le=MAX_VEHICLE_ID)
    current_mode: int = int(RelayMode.MAIN | RelayMode.IS_RELAY_NODE)

    @property
    def is_enabled(self) -> bool:
        return self.enabled_on_link_id >= 0


class VideoProfile(LinkSyncBaseModel):
    width: int = Field(default=1280, ge=0)
    height: int = Field(default=720, ge=0)


class VideoParams(LinkSyncBaseModel):
    selected_profile: int = Field(default=0, ge=0)
    profiles: list[VideoProfile] = Field(default_factory=list)


class UsageStats(LinkSyncBaseModel):
    current_on_time: int = Field(default=0, ge=0)
    """Seconds powered on in the current session."""
    current_flight_time: int = Field(default=0, ge=0)
    total_flights: int = Field(default=0, ge=0)


class ConfigSnapshot(LinkSyncBaseModel):
    """A vehicle configuration as last known by the controller.

    ``observer_only`` and ``developer_mode`` are controller-side settings;
    remote updates never overwrite them. ``must_sync_from_vehicle`` is a
    local marker and is cleared by every successful merge.
    """

    _KEY_ALIASES: ClassVar[dict[str, str]] = {
        "isSpectator": "observerOnly",
        "bDeveloperMode": "developerMode",
        "swVersion": "softwareVersion",
    }

    vehicle_id: int
    name: str = ""
    software_version: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    radio_links: list[RadioLink] = Field(default_factory=list)
    radio_interfaces: list[RadioInterface] = Field(default_factory=list)
    cameras: list[CameraParams] = Field(default_factory=list)
    current_camera: int = Field(default=-1, ge=-1)
    audio: AudioParams = Field(default_factory=AudioParams)
    osd: OsdParams = Field(default_factory=OsdParams)
    relay: RelayParams = Field(default_factory=RelayParams)
    video: VideoParams = Field(default_factory=VideoParams)
    stats: UsageStats = Field(default_factory=UsageStats)
    alarms: int = Field(default=0, ge=0)
    developer_mode: bool = False
    observer_only: bool = False
    must_sync_from_vehicle: bool = False

    @field_validator("vehicle_id")
    @classmethod
    def _check_vehicle_id(cls, value: int) -> int:
        if value <= 0 or value > MAX_VEHICLE_ID:
            raise ValueError(f"vehicle_id must be a nonzero 32-bit id, got {value}")
        return value

    @property
    def links_count(self) -> int:
        return len(self.radio_links)

    @property
    def interfaces_count(self) -> int:
        return len(self.radio_interfaces)

    @property
    def camera_count(self) -> int:
        return len(self.cameras)

    @property
    def build(self) -> int:
        return version_build(self.software_version)

    @property
    def active_camera(self) -> CameraParams | None:
        if 0 <= self.current_camera < len(self.cameras):
            return self.cameras[self.current_camera]
        return None

    @property
    def active_video_profile(self) -> VideoProfile | None:
        index = self.video.selected_profile
        if 0 <= index < len(self.video.profiles):
            return self.video.profiles[index]
        return None

    def label(self) -> str:
        """Short human-readable identity used in log lines."""
        if self.name:
            return f"{self.name} (VID {self.vehicle_id})"
        return f"VID {self.vehicle_id}"
