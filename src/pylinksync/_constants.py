"""Internal constants shared across the library."""

from __future__ import annotations

# Registry capacity: slot 0 is the home vehicle, slot 1 the relayed vehicle.
MAX_CONCURRENT_VEHICLES = 2
HOME_SLOT = 0
RELAY_SLOT = 1

# Vehicles older than this build advertised the "used for relay" capability
# bit on every radio link, so it has to be stripped on ingestion.
RELAY_FLAGS_FIXED_BUILD = 79

# Scratch copies of the last received configuration payload.
SCRATCH_PRIMARY_NAME = "last_recv_config.bin"
SCRATCH_BACKUP_NAME = "last_recv_config.bak"

DEFAULT_REPAIR_SETTLE_DELAY_S = 0.1
DEFAULT_RELAY_WARNING_WINDOW_S = 60.0
DEFAULT_UPDATE_ADVISORY_DURATION_S = 12.0
DEFAULT_MAX_UPLOAD_SEGMENTS = 64

# Interfaces whose driver byte is zero are not fully supported.
INTERFACE_DRIVER_MASK = 0xFF0000

# ------------------------------------------------------------------
# Packed software version: (major << 8) | minor | (build << 16)
# ------------------------------------------------------------------


def pack_version(major: int, minor: int, build: int) -> int:
    """Pack a ``major.minor (build)`` triple into the on-wire integer.

    Raises :class:`ValueError` when a component does not fit its field.
    """
    if not 0 <= major <= 0xFF or not 0 <= minor <= 0xFF:
        raise ValueError(f"major/minor must fit in a byte, got {major}.{minor}")
    if not 0 <= build <= 0xFFFF:
        raise ValueError(f"build must fit in 16 bits, got {build}")
    return ((major & 0xFF) << 8) | (minor & 0xFF) | ((build & 0xFFFF) << 16)


def unpack_version(packed: int) -> tuple[int, int, int]:
    """Return ``(major, minor, build)`` from a packed version."""
    return (packed >> 8) & 0xFF, packed & 0xFF, (packed >> 16) & 0xFFFF


def version_build(packed: int) -> int:
    return (packed >> 16) & 0xFFFF


def format_version(packed: int) -> str:
    major, minor, build = unpack_version(packed)
    return f"{major}.{minor} (b{build})"


def is_older_version(remote: int, local: int) -> bool:
    """Return ``True`` when *remote* is strictly older than *local*.

    Build numbers grow monotonically across releases, so they are compared
    first; ``major.minor`` only breaks ties between equal builds.
    """
    r_major, r_minor, r_build = unpack_version(remote)
    l_major, l_minor, l_build = unpack_version(local)
    return (r_build, r_major, r_minor) < (l_build, l_major, l_minor)
