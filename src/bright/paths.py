from __future__ import annotations

import os
from pathlib import Path


def default_state_dir(app_name: str = "bright") -> Path:
    """Return a user-writable directory for saved brightness values.

    Uses XDG_STATE_HOME when available, else ~/.local/state.
    """

    base = os.environ.get("XDG_STATE_HOME")
    if base:
        root = Path(base)
    else:
        root = Path.home() / ".local" / "state"
    return root / app_name / "restore"


def default_config_file(app_name: str = "bright") -> Path:
    """Return $XDG_CONFIG_HOME/<app>/config.yaml, else ~/.config/<app>/config.yaml."""

    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        root = Path(base)
    else:
        root = Path.home() / ".config"
    return root / app_name / "config.yaml"
