"""pylinksync - Vehicle configuration sync and pairing lifecycle controller."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylinksync")
except PackageNotFoundError:
    __version__ = "0+local"
from pylinksync.codec import decode_snapshot, encode_snapshot
from pylinksync.config import SyncConfig
from pylinksync.controller import ListenerHook, SyncCallbacks, SyncController
from pylinksync.exceptions import (
    CorruptSnapshotError,
    LinkSyncConfigError,
    LinkSyncError,
    SnapshotError,
    SnapshotPersistenceError,
    UploadSegmentError,
)
from pylinksync.models import (
    AudioParams,
    CameraParams,
    CameraType,
    ConfigSnapshot,
    IngestOutcome,
    IngestResult,
    OsdParams,
    RadioCapability,
    RadioFrameFlag,
    RadioInterface,
    RadioLink,
    RelayMode,
    RelayParams,
    RuntimeVehicleEntry,
    UsageStats,
    VehicleAlarm,
    VideoParams,
    VideoProfile,
)
from pylinksync.state.context import PairingState
from pylinksync.state.effects import AdvisoryKind, ModalDescriptor, ReloadReason, Severity
from pylinksync.state.events import (
    BeginPairing,
    LinkEstablished,
    LinkLost,
    MainVehicleChanged,
    ModalVisibilityChanged,
    PairingStopped,
    RelayModeChanged,
    SettingsReceived,
    SettingsSegmentReceived,
    StopPairing,
    SyncEvent,
    TelemetryReceived,
    VehicleAdded,
    VehicleDeleted,
)
from pylinksync.state.registry import VehicleRegistry
from pylinksync.state.store import ScratchStore, SnapshotStore

__all__ = [
    "AdvisoryKind",
    "AudioParams",
    "BeginPairing",
    "CameraParams",
    "CameraType",
    "ConfigSnapshot",
    "CorruptSnapshotError",
    "IngestOutcome",
    "IngestResult",
    "LinkEstablished",
    "LinkLost",
    "LinkSyncConfigError",
    "LinkSyncError",
    "ListenerHook",
    "MainVehicleChanged",
    "ModalDescriptor",
    "ModalVisibilityChanged",
    "OsdParams",
    "PairingState",
    "PairingStopped",
    "RadioCapability",
    "RadioFrameFlag",
    "RadioInterface",
    "RadioLink",
    "RelayMode",
    "RelayModeChanged",
    "RelayParams",
    "ReloadReason",
    "RuntimeVehicleEntry",
    "ScratchStore",
    "SettingsReceived",
    "SettingsSegmentReceived",
    "Severity",
    "SnapshotError",
    "SnapshotPersistenceError",
    "SnapshotStore",
    "StopPairing",
    "SyncCallbacks",
    "SyncConfig",
    "SyncController",
    "SyncEvent",
    "TelemetryReceived",
    "UploadSegmentError",
    "UsageStats",
    "VehicleAdded",
    "VehicleAlarm",
    "VehicleDeleted",
    "VehicleRegistry",
    "VideoParams",
    "VideoProfile",
    "decode_snapshot",
    "encode_snapshot",
    "__version__",
]
