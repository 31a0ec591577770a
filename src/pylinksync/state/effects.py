"""Side-effect descriptors returned by handlers.

Handlers never call collaborators for user-facing or link-level actions;
they return these descriptors and the controller executes them in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from pylinksync.models.results import IngestResult


class Severity(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AdvisoryKind(StrEnum):
    SEARCHING = "searching"
    LINK_LOST = "link_lost"
    WRONG_VEHICLE = "wrong_vehicle"


class ReloadReason(StrEnum):
    SYNCHRONISED_SETTINGS_FROM_VEHICLE = "synchronised_settings_from_vehicle"


@dataclass(frozen=True)
class ModalDescriptor:
    kind: str
    title: str
    message: str = ""
    vehicle_id: int = 0


@dataclass(frozen=True)
class Notify:
    vehicle_id: int
    message: str
    severity: Severity = Severity.INFO
    duration: float | None = None


@dataclass(frozen=True)
class ShowModal:
    descriptor: ModalDescriptor


@dataclass(frozen=True)
class BroadcastReload:
    reason: ReloadReason
    vehicle_id: int


@dataclass(frozen=True)
class DismissAdvisories:
    kinds: tuple[AdvisoryKind, ...] = field(default_factory=lambda: tuple(AdvisoryKind))


@dataclass(frozen=True)
class ClearAlerts:
    pass


@dataclass(frozen=True)
class ApplyDisplayLayout:
    layout_index: int
    vehicle_id: int = 0


@dataclass(frozen=True)
class RequestPairingStop:
    pass


@dataclass(frozen=True)
class RequestPairingStart:
    pass


@dataclass(frozen=True)
class Settle:
    """Pause the dispatch context for *seconds* before the next effect."""

    seconds: float


Effect = (
    Notify
    | ShowModal
    | BroadcastReload
    | DismissAdvisories
    | ClearAlerts
    | ApplyDisplayLayout
    | RequestPairingStop
    | RequestPairingStart
    | Settle
)


@dataclass
class HandlerResult:
    """What a handler hands back to the controller."""

    effects: list[Effect] = field(default_factory=list)
    result: IngestResult | None = None
