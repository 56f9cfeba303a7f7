from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from bright.paths import default_config_file, default_state_dir
from bright.scale import LINEAR, Curve, parse_curve

logger = logging.getLogger(__name__)

ENV_CONFIG = "BRIGHT_CONFIG"


class ConfigError(ValueError):
    pass


def _check_curve(where: str, spec: Any) -> None:
    if not isinstance(spec, str):
        raise ConfigError(f"{where} must be a string like x, x^2.2 or 3^x")
    try:
        parse_curve(spec)
    except ValueError as e:
        raise ConfigError(f"{where}: {e}") from e


def locate(explicit: str | Path | None = None) -> tuple[Path, bool]:
    """Return the config path and whether the user asked for it explicitly."""

    if explicit:
        return Path(explicit), True
    env = os.environ.get(ENV_CONFIG)
    if env:
        return Path(env), True
    return default_config_file(), False


def load(path: str | Path | None = None) -> dict[str, Any]:
    p, explicit = locate(path)
    if not p.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {p}")
        logger.debug("No config file at %s, using defaults", p)
        data: Any = {}
    else:
        logger.debug("Loading config from %s", p)
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Can't read {p}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Can't parse {p}: {e}") from e
        if data is None:
            data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be a mapping")
    validate(data)
    normalize(data)
    return data


def validate(cfg: dict[str, Any]) -> None:
    if "curve" in cfg:
        _check_curve("curve", cfg["curve"])

    curves = cfg.get("curves")
    if curves is None:
        curves = {}
    if not isinstance(curves, dict):
        raise ConfigError("curves must be a mapping of device name to curve")
    for name, spec in curves.items():
        _check_curve(f"curves.{name}", spec)

    for key in ("state_dir", "device"):
        if key in cfg and (not isinstance(cfg[key], str) or not cfg[key].strip()):
            raise ConfigError(f"{key} must be a non-empty string")


def normalize(cfg: dict[str, Any]) -> None:
    """Fill defaults and trim stray whitespace in place."""

    cfg["curve"] = str(cfg.get("curve", "x")).strip()
    cfg["curves"] = {str(k).strip(): str(v).strip() for k, v in (cfg.get("curves") or {}).items()}

    state_dir = str(cfg.get("state_dir") or "").strip()
    cfg["state_dir"] = str(Path(state_dir).expanduser()) if state_dir else str(default_state_dir())

    if cfg.get("device"):
        cfg["device"] = str(cfg["device"]).strip()


def curve_for(cfg: dict[str, Any], device: str, override: Curve | None = None) -> Curve:
    """An explicit override wins, then the device entry, then the global curve."""

    if override is not None:
        return override
    spec = (cfg.get("curves") or {}).get(device) or cfg.get("curve")
    return parse_curve(spec) if spec else LINEAR
