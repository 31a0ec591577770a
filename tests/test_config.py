from __future__ import annotations

from pathlib import Path

import pytest

from pylinksync._constants import pack_version
from pylinksync.config import SyncConfig
from pylinksync.exceptions import LinkSyncConfigError


def test_defaults() -> None:
    config = SyncConfig()
    assert config.scratch_dir == Path("tmp")
    assert config.relay_warning_window == 60.0
    assert config.settings_notice_duration is None
    assert config.packed_local_version == 0


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LINKSYNC_LOCAL_VERSION", "1.1.79")
    monkeypatch.setenv("LINKSYNC_SCRATCH_DIR", str(tmp_path))
    monkeypatch.setenv("LINKSYNC_RELAY_WARNING_WINDOW", "30")
    monkeypatch.setenv("LINKSYNC_MAX_UPLOAD_SEGMENTS", "16")

    config = SyncConfig.from_env()

    assert config.local_version == (1, 1, 79)
    assert config.packed_local_version == pack_version(1, 1, 79)
    assert config.scratch_dir == tmp_path
    assert config.relay_warning_window == 30.0
    assert config.max_upload_segments == 16


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKSYNC_LOCAL_VERSION", "1.1")
    monkeypatch.setenv("LINKSYNC_REPAIR_SETTLE_DELAY", "2.5")

    config = SyncConfig.from_env(local_version=(2, 0, 90), repair_settle_delay=0.0)

    assert config.local_version == (2, 0, 90)
    assert config.repair_settle_delay == 0.0


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("LINKSYNC_LOCAL_VERSION", "one.two"),
        ("LINKSYNC_LOCAL_VERSION", "1"),
        ("LINKSYNC_RELAY_WARNING_WINDOW", "soon"),
        ("LINKSYNC_MAX_UPLOAD_SEGMENTS", "many"),
        ("LINKSYNC_MAX_UPLOAD_SEGMENTS", "0"),
    ],
)
def test_invalid_env_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(LinkSyncConfigError):
        SyncConfig.from_env()


def test_invalid_fields_are_rejected() -> None:
    with pytest.raises(LinkSyncConfigError):
        SyncConfig(repair_settle_delay=-1.0)
    with pytest.raises(LinkSyncConfigError):
        SyncConfig(local_version=(1, 300, 0))


def test_scratch_dir_is_coerced_to_path() -> None:
    config = SyncConfig(scratch_dir="/var/tmp/linksync")  # type: ignore[arg-type]
    assert config.scratch_dir == Path("/var/tmp/linksync")
