"""Async dispatcher driving the configuration sync controller."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any, Protocol

from pylinksync import lifecycle
from pylinksync.config import SyncConfig
from pylinksync.ingestion import ingest_segment, ingest_settings
from pylinksync.models.results import IngestResult
from pylinksync.models.snapshot import ConfigSnapshot
from pylinksync.state.context import PairingState, SyncContext
from pylinksync.state.effects import (
    AdvisoryKind,
    ApplyDisplayLayout,
    BroadcastReload,
    ClearAlerts,
    DismissAdvisories,
    Effect,
    HandlerResult,
    ModalDescriptor,
    Notify,
    ReloadReason,
    RequestPairingStart,
    RequestPairingStop,
    Settle,
    Severity,
    ShowModal,
)
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
from pylinksync.state.relay import RelayConsistencyChecker
from pylinksync.state.store import ScratchStore, SnapshotStore

_logger = logging.getLogger(__name__)


class SyncCallbacks(Protocol):
    """Collaborators the controller drives.

    Implementations should return quickly; they run inside the dispatch
    context. Pairing stop/start requests are expected to feed
    :class:`StopPairing` / :class:`BeginPairing` (and the matching
    completion events) back through :meth:`SyncController.post`.
    """

    def notify(self, vehicle_id: int, message: str, severity: Severity, duration: float | None) -> None: ...

    def show_modal(self, descriptor: ModalDescriptor) -> None: ...

    def broadcast_reload(self, reason: ReloadReason, vehicle_id: int) -> None: ...

    def request_pairing_stop(self) -> None: ...

    def request_pairing_start(self) -> None: ...

    def apply_display_layout(self, layout_index: int) -> None: ...

    def dismiss_advisories(self, kinds: tuple[AdvisoryKind, ...]) -> None: ...

    def clear_alerts(self) -> None: ...


class ListenerHook(StrEnum):
    """Observable points other components may subscribe to."""

    VEHICLE_ADDED = "vehicle_added"
    VEHICLE_DELETED = "vehicle_deleted"
    MAIN_VEHICLE_CHANGED = "main_vehicle_changed"


Listener = Callable[[int], None]
_Handler = Callable[[SyncContext, Any], HandlerResult]


def _on_settings(ctx: SyncContext, event: SettingsReceived) -> HandlerResult:
    return ingest_settings(
        ctx,
        event.vehicle_id,
        event.data,
        length=event.length,
        unsolicited=event.unsolicited,
    )


_HANDLERS: dict[type[SyncEvent], _Handler] = {
    BeginPairing: lifecycle.on_begin_pairing,
    LinkEstablished: lifecycle.on_link_established,
    TelemetryReceived: lifecycle.on_telemetry,
    LinkLost: lifecycle.on_link_lost,
    StopPairing: lifecycle.on_stop_pairing,
    PairingStopped: lifecycle.on_pairing_stopped,
    SettingsReceived: _on_settings,
    SettingsSegmentReceived: ingest_segment,
    RelayModeChanged: lifecycle.on_relay_mode_changed,
    MainVehicleChanged: lifecycle.on_main_vehicle_changed,
    VehicleAdded: lifecycle.on_vehicle_added,
    VehicleDeleted: lifecycle.on_vehicle_deleted,
    ModalVisibilityChanged: lifecycle.on_modal_visibility,
}

_LISTENER_EVENTS: dict[type[SyncEvent], ListenerHook] = {
    VehicleAdded: ListenerHook.VEHICLE_ADDED,
    VehicleDeleted: ListenerHook.VEHICLE_DELETED,
    MainVehicleChanged: ListenerHook.MAIN_VEHICLE_CHANGED,
}


class SyncController:
    """Serializes events and runs their effects against the collaborators.

    Usage::

        async with SyncController(config, callbacks) as controller:
            await controller.dispatch(MainVehicleChanged(vehicle_id=42))
            await controller.dispatch(BeginPairing())
            result = await controller.ingest(42, payload)

    Every event is handled under one lock, so handlers and effects never
    interleave. Events raised by collaborators while an event is being
    handled must go through :meth:`post`, which queues them behind the
    current one.
    """

    def __init__(
        self,
        config: SyncConfig,
        callbacks: SyncCallbacks,
        *,
        store: SnapshotStore | None = None,
        scratch: ScratchStore | None = None,
        relay_checker: RelayConsistencyChecker | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._callbacks = callbacks
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[HandlerResult]] = set()
        self._listeners: dict[ListenerHook, list[Listener]] = {hook: [] for hook in ListenerHook}
        self._ctx = SyncContext(
            config=config,
            store=store if store is not None else SnapshotStore(),
            scratch=scratch if scratch is not None else ScratchStore(config.scratch_dir),
            relay_checker=relay_checker,
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SyncController:
        loaded = self._ctx.store.load()
        if loaded:
            _logger.info("Loaded %d stored vehicle configurations", loaded)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.drain()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def context(self) -> SyncContext:
        return self._ctx

    @property
    def state(self) -> PairingState:
        return self._ctx.state

    @property
    def registry(self) -> VehicleRegistry:
        return self._ctx.registry

    @property
    def store(self) -> SnapshotStore:
        return self._ctx.store

    @property
    def current_snapshot(self) -> ConfigSnapshot | None:
        return self._ctx.current_snapshot

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, hook: ListenerHook, listener: Listener) -> None:
        """Register *listener* for *hook*; listeners run in registration order."""
        self._listeners[hook].append(listener)

    def remove_listener(self, hook: ListenerHook, listener: Listener) -> None:
        try:
            self._listeners[hook].remove(listener)
        except ValueError:
            _logger.debug("Listener %r was not registered for %s", listener, hook)

    def _notify_listeners(self, hook: ListenerHook, vehicle_id: int) -> None:
        for listener in list(self._listeners[hook]):
            try:
                listener(vehicle_id)
            except Exception:
                _logger.debug("%s listener failed", hook, exc_info=True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, event: SyncEvent) -> HandlerResult:
        """Handle *event* and run its effects before returning."""
        handler = _HANDLERS.get(type(event))
        if handler is None:
            raise TypeError(f"No handler for event type {type(event).__name__}")

        async with self._lock:
            _logger.debug("Dispatching %s in state %s", type(event).__name__, self._ctx.state)
            outcome = handler(self._ctx, event)
            await self._run_effects(outcome.effects)
            hook = _LISTENER_EVENTS.get(type(event))
            if hook is not None:
                self._notify_listeners(hook, getattr(event, "vehicle_id", 0))
            return outcome

    def post(self, event: SyncEvent) -> asyncio.Task[HandlerResult]:
        """Queue *event* behind whatever is being dispatched right now.

        Safe to call from a collaborator callback. Requires a running loop.
        """
        name = type(event).__name__

        def _done(task: asyncio.Task[HandlerResult]) -> None:
            self._pending.discard(task)
            if task.cancelled():
                _logger.debug("Posted %s was cancelled", name)
                return
            exc = task.exception()
            if exc is not None:
                _logger.error("Posted %s failed in state %s", name, self._ctx.state, exc_info=exc)

        task = asyncio.get_running_loop().create_task(self.dispatch(event))
        self._pending.add(task)
        task.add_done_callback(_done)
        return task

    async def drain(self) -> None:
        """Wait until every posted event has been handled.

        Failures are logged when each task finishes, so they are not re-raised here.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def ingest(
        self,
        vehicle_id: int,
        data: bytes,
        *,
        length: int | None = None,
        unsolicited: bool = False,
    ) -> IngestResult:
        """Dispatch a received configuration payload and return its outcome."""
        outcome = await self.dispatch(
            SettingsReceived(vehicle_id=vehicle_id, data=data, length=length, unsolicited=unsolicited)
        )
        assert outcome.result is not None  # noqa: S101
        return outcome.result

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    async def _run_effects(self, effects: list[Effect]) -> None:
        callbacks = self._callbacks
        for effect in effects:
            match effect:
                case Notify():
                    callbacks.notify(effect.vehicle_id, effect.message, effect.severity, effect.duration)
                case ShowModal():
                    callbacks.show_modal(effect.descriptor)
                case BroadcastReload():
                    callbacks.broadcast_reload(effect.reason, effect.vehicle_id)
                case DismissAdvisories():
                    callbacks.dismiss_advisories(effect.kinds)
                case ClearAlerts():
                    callbacks.clear_alerts()
                case ApplyDisplayLayout():
                    callbacks.apply_display_layout(effect.layout_index)
                case RequestPairingStop():
                    callbacks.request_pairing_stop()
                case RequestPairingStart():
                    callbacks.request_pairing_start()
                case Settle():
                    await self._sleep(effect.seconds)
                case _:
                    raise TypeError(f"Unknown effect {effect!r}")
