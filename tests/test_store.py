from __future__ import annotations

from pathlib import Path

import pytest

from bright.errors import InvalidDevice, IoError, NoSavedState
from bright.paths import default_config_file, default_state_dir
from bright.store import StateStore


def test_save_then_load(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "restore")
    store.save("intel_backlight", 321)
    assert store.load("intel_backlight") == 321
    assert (tmp_path / "restore" / "intel_backlight").read_text(encoding="utf-8") == "321"


def test_last_write_wins(tmp_path: Path) -> None:
    store = StateStore(tmp_path)
    store.save("acpi_video0", 1)
    store.save("acpi_video0", 2)
    assert store.load("acpi_video0") == 2
    assert sorted(p.name for p in tmp_path.iterdir()) == ["acpi_video0"]


def test_entries_are_per_device(tmp_path: Path) -> None:
    store = StateStore(tmp_path)
    store.save("a", 10)
    store.save("b", 20)
    assert (store.load("a"), store.load("b")) == (10, 20)


def test_missing_entry_is_no_saved_state(tmp_path: Path) -> None:
    store = StateStore(tmp_path / "never-created")
    with pytest.raises(NoSavedState):
        store.load("intel_backlight")


def test_clear(tmp_path: Path) -> None:
    store = StateStore(tmp_path)
    store.save("a", 10)
    store.clear("a")
    store.clear("a")
    with pytest.raises(NoSavedState):
        store.load("a")


def test_corrupt_entry_is_io_error(tmp_path: Path) -> None:
    (tmp_path / "a").write_text("not a number", encoding="utf-8")
    with pytest.raises(IoError):
        StateStore(tmp_path).load("a")


def test_unwritable_directory_is_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(IoError):
        StateStore(blocker / "restore").save("a", 1)


@pytest.mark.parametrize("name", ["", ".", "..", "../etc", "a/b"])
def test_rejects_path_like_device_names(tmp_path: Path, name: str) -> None:
    with pytest.raises(InvalidDevice):
        StateStore(tmp_path).save(name, 1)


def test_default_state_dir_is_user_writable(monkeypatch) -> None:
    monkeypatch.delenv("XDG_STATE_HOME", raising=False)
    p = default_state_dir()
    # Must not default to system locations like /var/lib.
    assert str(p).startswith(str(Path.home()))


def test_default_dirs_follow_xdg(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    assert default_state_dir() == tmp_path / "state" / "bright" / "restore"
    assert default_config_file() == tmp_path / "config" / "bright" / "config.yaml"
