"""Explicit controller state passed to every handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pylinksync.config import SyncConfig
from pylinksync.models.snapshot import ConfigSnapshot
from pylinksync.models.upload import UploadSession
from pylinksync.state.registry import VehicleRegistry
from pylinksync.state.relay import RelayConsistencyChecker
from pylinksync.state.store import ScratchStore, SnapshotStore


class PairingState(StrEnum):
    UNPAIRED = "unpaired"
    BEFORE_PAIRING = "before_pairing"
    PAIRED = "paired"
    RECEIVING_DATA = "receiving_data"
    STOPPING_PAIRING = "stopping_pairing"


@dataclass(slots=True)
class TransientFlags:
    """Overlay, alarm and link markers that pairing transitions reset."""

    video_data_overload_alarm: bool = False
    video_tx_overload_alarm: bool = False
    link_lost: bool = False
    overlay_frozen: bool = False
    got_stats_video_bitrate: bool = False
    got_stats_vehicle_tx: bool = False
    switching_radio_link: bool = False
    reconfiguring_radio_link: bool = False
    router_ready: bool = False

    def clear_overlay_and_alarms(self) -> None:
        self.clear_overloads()
        self.link_lost = False
        self.overlay_frozen = False
        self.got_stats_video_bitrate = False
        self.got_stats_vehicle_tx = False

    def clear_overloads(self) -> None:
        self.video_data_overload_alarm = False
        self.video_tx_overload_alarm = False

    def clear_link_reconfiguration(self) -> None:
        self.switching_radio_link = False
        self.reconfiguring_radio_link = False
        self.router_ready = False


@dataclass(slots=True)
class SyncContext:
    """Everything the handlers read and mutate.

    Owned by the dispatcher; handlers only run from its single dispatch
    context so no locking is needed here.
    """

    config: SyncConfig
    store: SnapshotStore
    scratch: ScratchStore
    registry: VehicleRegistry = field(default_factory=VehicleRegistry)
    relay_checker: RelayConsistencyChecker | None = None
    state: PairingState = PairingState.UNPAIRED
    current_vehicle_id: int = 0
    flags: TransientFlags = field(default_factory=TransientFlags)
    upload: UploadSession = field(default_factory=UploadSession)
    sync_on_link_recover: bool = False
    update_prompt_shown: bool = False
    modal_active: bool = False
    first_connection_to_current: bool = True

    def __post_init__(self) -> None:
        if self.relay_checker is None:
            self.relay_checker = RelayConsistencyChecker(window_seconds=self.config.relay_warning_window)

    @property
    def current_snapshot(self) -> ConfigSnapshot | None:
        if self.current_vehicle_id == 0:
            return None
        return self.store.find(self.current_vehicle_id)

    def clear_upload(self) -> None:
        self.upload = UploadSession()
