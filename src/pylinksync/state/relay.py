"""Relay pair video profile consistency check."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pylinksync._constants import DEFAULT_RELAY_WARNING_WINDOW_S
from pylinksync.models.snapshot import ConfigSnapshot, VideoProfile
from pylinksync.state.effects import Notify, Severity

_logger = logging.getLogger(__name__)


def resolution_mismatch(
    home: ConfigSnapshot, relayed: ConfigSnapshot
) -> tuple[VideoProfile, VideoProfile] | None:
    """Return both active profiles when their resolutions differ, else ``None``."""
    home_profile = home.active_video_profile
    relayed_profile = relayed.active_video_profile
    if home_profile is None or relayed_profile is None:
        return None
    if home_profile.width == relayed_profile.width and home_profile.height == relayed_profile.height:
        return None
    return home_profile, relayed_profile


class RelayConsistencyChecker:
    """Rate-limited "different video resolutions" advisory.

    One advisory per rolling window, tracked by the timestamp of the last
    advisory actually emitted. Suppressed mismatches do not move the window.
    """

    def __init__(
        self,
        *,
        window_seconds: float = DEFAULT_RELAY_WARNING_WINDOW_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window_seconds
        self._clock = clock
        self._last_emitted: float | None = None

    @property
    def last_emitted(self) -> float | None:
        return self._last_emitted

    def check(self, home: ConfigSnapshot, relayed: ConfigSnapshot) -> Notify | None:
        mismatch = resolution_mismatch(home, relayed)
        if mismatch is None:
            return None

        now = self._clock()
        if self._last_emitted is not None and now <= self._last_emitted + self._window:
            _logger.debug("Relay resolution mismatch advisory suppressed (rate limited)")
            return None
        self._last_emitted = now

        home_profile, relayed_profile = mismatch
        return Notify(
            vehicle_id=home.vehicle_id,
            message=(
                "The relay and relayed vehicles have different video streams resolutions "
                f"({home_profile.width} x {home_profile.height} and "
                f"{relayed_profile.width} x {relayed_profile.height}). "
                "Set the same video resolution for both cameras to get best relaying performance."
            ),
            severity=Severity.WARNING,
        )
