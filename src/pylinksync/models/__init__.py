"""Typed models for vehicle configuration records and sync bookkeeping."""

from pylinksync.models._base import LinkSyncBaseModel, LinkSyncEnum
from pylinksync.models.results import IngestOutcome, IngestResult
from pylinksync.models.runtime import RuntimeVehicleEntry
from pylinksync.models.snapshot import (
    AudioParams,
    CameraParams,
    CameraType,
    ConfigSnapshot,
    OsdParams,
    RadioCapability,
    RadioFrameFlag,
    RadioInterface,
    RadioLink,
    RelayMode,
    RelayParams,
    UsageStats,
    VehicleAlarm,
    VideoParams,
    VideoProfile,
)
from pylinksync.models.upload import UploadSession

__all__ = [
    "AudioParams",
    "CameraParams",
    "CameraType",
    "ConfigSnapshot",
    "IngestOutcome",
    "IngestResult",
    "LinkSyncBaseModel",
    "LinkSyncEnum",
    "OsdParams",
    "RadioCapability",
    "RadioFrameFlag",
    "RadioInterface",
    "RadioLink",
    "RelayMode",
    "RelayParams",
    "RuntimeVehicleEntry",
    "UploadSession",
    "UsageStats",
    "VehicleAlarm",
    "VideoParams",
    "VideoProfile",
]
