from __future__ import annotations

from pathlib import Path

import pytest

from bright.config import ConfigError, curve_for, load, normalize, validate
from bright.scale import LINEAR, Exponential, Power


def test_valid_curves_pass() -> None:
    validate({"curve": "x^2", "curves": {"intel_backlight": "3^x", "kbd": "x"}})


@pytest.mark.parametrize(
    "cfg",
    [
        {"curve": "y^2"},
        {"curve": 2},
        {"curves": ["x"]},
        {"curves": {"a": "x^0"}},
        {"curve": "x^inf"},
        {"curves": {"a": "inf^x"}},
        {"state_dir": ""},
        {"device": 3},
    ],
)
def test_invalid_config_rejected(cfg: dict) -> None:
    with pytest.raises(ConfigError):
        validate(cfg)


def test_normalize_strips_whitespace_and_sets_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
    cfg = {"curves": {" intel_backlight ": " x^2 "}, "device": " acpi_video0 "}
    normalize(cfg)
    assert cfg["curve"] == "x"
    assert cfg["curves"] == {"intel_backlight": "x^2"}
    assert cfg["device"] == "acpi_video0"
    assert cfg["state_dir"] == str(tmp_path / "bright" / "restore")


def test_curve_for_prefers_device_entry() -> None:
    cfg = {"curve": "x^2", "curves": {"kbd": "2^x"}}
    assert curve_for(cfg, "kbd") == Exponential(2.0)
    assert curve_for(cfg, "intel_backlight") == Power(2.0)
    assert curve_for({}, "intel_backlight") == LINEAR


def test_load_yaml(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("curve: x^2.2\nstate_dir: ~/bright-state\n", encoding="utf-8")
    cfg = load(p)
    assert cfg["curve"] == "x^2.2"
    assert cfg["state_dir"] == str(Path.home() / "bright-state")


def test_missing_default_config_means_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("BRIGHT_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert load()["curve"] == "x"


def test_missing_explicit_config_is_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load(tmp_path / "nope.yaml")


def test_env_config_is_explicit(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BRIGHT_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(ConfigError):
        load()


@pytest.mark.parametrize("text", ["- a\n- b\n", "curve: [unclosed\n"])
def test_bad_yaml_rejected(tmp_path: Path, text: str) -> None:
    p = tmp_path / "config.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load(p)


def test_empty_curves_key_means_no_entries(tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("curve: x^2\ncurves:\n", encoding="utf-8")
    cfg = load(p)
    assert cfg["curves"] == {}
    assert curve_for(cfg, "intel_backlight") == Power(2.0)


def test_unreadable_config_is_config_error(monkeypatch, tmp_path: Path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("curve: x\n", encoding="utf-8")

    def denied(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_text", denied)
    with pytest.raises(ConfigError, match="Can't read"):
        load(p)


def test_curve_override_wins() -> None:
    cfg = {"curve": "x^2", "curves": {"kbd": "2^x"}}
    assert curve_for(cfg, "kbd", Power(3.0)) == Power(3.0)
    assert curve_for(cfg, "intel_backlight", LINEAR) == LINEAR
