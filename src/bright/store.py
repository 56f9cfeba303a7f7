from __future__ import annotations

import logging
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from bright.errors import InvalidDevice, IoError, NoSavedState

logger = logging.getLogger(__name__)


def _check_device(device: str) -> None:
    if not device or device in (".", "..") or "/" in device or "\0" in device:
        raise InvalidDevice(f"Invalid device name: {device!r}")


@dataclass(frozen=True)
class StateStore:
    """Last saved raw brightness per device, one small file each.

    Concurrent writers are not coordinated: whichever replace lands last wins.
    """

    directory: Path

    def path_for(self, device: str) -> Path:
        _check_device(device)
        return self.directory / device

    def save(self, device: str, raw: int) -> None:
        path = self.path_for(device)
        tmp = path.with_name(f".{device}.{os.getpid()}.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(str(int(raw)), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            with suppress(OSError):
                tmp.unlink()
            raise IoError(f"Could not save brightness to {path}: {e}") from e
        logger.debug("Saved brightness %s for %s to %s", raw, device, path)

    def load(self, device: str) -> int:
        path = self.path_for(device)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NoSavedState(device) from None
        except OSError as e:
            raise IoError(f"Could not read saved brightness from {path}: {e}") from e
        try:
            value = int(text.strip())
        except ValueError as e:
            raise IoError(f"Saved brightness in {path} is not a number: {text!r}") from e
        logger.debug("Loaded brightness %s for %s from %s", value, device, path)
        return value

    def clear(self, device: str) -> None:
        path = self.path_for(device)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise IoError(f"Could not remove {path}: {e}") from e
