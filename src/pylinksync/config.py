"""Controller configuration for pylinksync."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pylinksync._constants import (
    DEFAULT_MAX_UPLOAD_SEGMENTS,
    DEFAULT_RELAY_WARNING_WINDOW_S,
    DEFAULT_REPAIR_SETTLE_DELAY_S,
    DEFAULT_UPDATE_ADVISORY_DURATION_S,
    pack_version,
)
from pylinksync.exceptions import LinkSyncConfigError


def _parse_version(value: str) -> tuple[int, int, int]:
    """Parse ``"major.minor.build"`` (or ``"major.minor"`` with build 0)."""
    parts = value.strip().split(".")
    if len(parts) not in (2, 3):
        raise LinkSyncConfigError(f"Version must look like 'major.minor[.build]', got {value!r}")
    try:
        numbers = [int(part) for part in parts]
    except ValueError as exc:
        raise LinkSyncConfigError(f"Version components must be integers, got {value!r}") from exc
    if len(numbers) == 2:
        numbers.append(0)
    return numbers[0], numbers[1], numbers[2]


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise LinkSyncConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Controller configuration.

    Parameters
    ----------
    local_version : tuple[int, int, int]
        ``(major, minor, build)`` of the controller software. Remote
        vehicles running an older version get an update advisory.
    scratch_dir : Path
        Directory receiving the primary and backup copies of the last
        received configuration payload.
    repair_settle_delay : float
        Seconds to wait between stopping and restarting pairing when a
        radio-critical change forces a link rebuild.
    relay_warning_window : float
        Minimum seconds between two "relay resolution mismatch" advisories.
    update_advisory_duration : float
        How long the "please update your vehicle" advisory stays visible.
    settings_notice_duration : float or None
        Duration of the "received vehicle settings" notice; ``None`` uses
        the collaborator's default.
    max_upload_segments : int
        Upper bound on segments accepted for one segmented upload.
    """

    local_version: tuple[int, int, int] = (0, 0, 0)
    scratch_dir: Path = Path("tmp")
    repair_settle_delay: float = DEFAULT_REPAIR_SETTLE_DELAY_S
    relay_warning_window: float = DEFAULT_RELAY_WARNING_WINDOW_S
    update_advisory_duration: float = DEFAULT_UPDATE_ADVISORY_DURATION_S
    settings_notice_duration: float | None = None
    max_upload_segments: int = DEFAULT_MAX_UPLOAD_SEGMENTS

    def __post_init__(self) -> None:
        if self.repair_settle_delay < 0:
            raise LinkSyncConfigError("repair_settle_delay must be >= 0")
        if self.relay_warning_window < 0:
            raise LinkSyncConfigError("relay_warning_window must be >= 0")
        if self.max_upload_segments <= 0:
            raise LinkSyncConfigError("max_upload_segments must be positive")
        try:
            pack_version(*self.local_version)
        except (TypeError, ValueError) as exc:
            raise LinkSyncConfigError(f"Invalid local_version {self.local_version!r}: {exc}") from exc
        if not isinstance(self.scratch_dir, Path):
            object.__setattr__(self, "scratch_dir", Path(self.scratch_dir))

    @property
    def packed_local_version(self) -> int:
        return pack_version(*self.local_version)

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads optional ``LINKSYNC_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SyncConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        version_env = env.get("LINKSYNC_LOCAL_VERSION")
        if version_env is not None and "local_version" not in overrides:
            config_kwargs["local_version"] = _parse_version(version_env)

        scratch_env = env.get("LINKSYNC_SCRATCH_DIR")
        if scratch_env is not None and "scratch_dir" not in overrides:
            config_kwargs["scratch_dir"] = Path(scratch_env)

        _ENV_FLOAT_MAP = {
            "LINKSYNC_REPAIR_SETTLE_DELAY": "repair_settle_delay",
            "LINKSYNC_RELAY_WARNING_WINDOW": "relay_warning_window",
            "LINKSYNC_UPDATE_ADVISORY_DURATION": "update_advisory_duration",
            "LINKSYNC_SETTINGS_NOTICE_DURATION": "settings_notice_duration",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            if field_name in overrides:
                continue
            value = _env_float(env, env_key)
            if value is not None:
                config_kwargs[field_name] = value

        segments_env = env.get("LINKSYNC_MAX_UPLOAD_SEGMENTS")
        if segments_env is not None and "max_upload_segments" not in overrides:
            try:
                config_kwargs["max_upload_segments"] = int(segments_env)
            except ValueError as exc:
                raise LinkSyncConfigError(
                    f"LINKSYNC_MAX_UPLOAD_SEGMENTS must be an integer, got {segments_env!r}"
                ) from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
