from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bright.errors import InvalidDevice, IoError

SYSFS_CLASS_ROOT = Path("/sys/class")
DEVICE_CLASSES = ("backlight", "leds")

BL_POWER = {0: "on", 4: "off"}


class Device(Protocol):
    """What the controller needs from a brightness device."""

    @property
    def name(self) -> str: ...

    def read_current(self) -> int: ...

    def read_max(self) -> int: ...

    def write(self, value: int) -> None: ...


@dataclass(frozen=True)
class SysfsDevice:
    sysfs_dir: Path

    @property
    def name(self) -> str:
        return self.sysfs_dir.name

    @property
    def device_class(self) -> str:
        return self.sysfs_dir.parent.name

    @property
    def _brightness(self) -> Path:
        return self.sysfs_dir / "brightness"

    @property
    def _max_brightness(self) -> Path:
        return self.sysfs_dir / "max_brightness"

    def _read_int(self, path: Path) -> int:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise InvalidDevice(f"Device {self.name} does not exist ({path} missing)") from e
        except OSError as e:
            raise IoError(f"Can't read {path}: {e}") from e
        try:
            return int(text.strip())
        except ValueError as e:
            raise IoError(f"Can't parse {path}: {text!r}") from e

    def read_current(self) -> int:
        return self._read_int(self._brightness)

    def read_max(self) -> int:
        value = self._read_int(self._max_brightness)
        if value <= 0:
            raise InvalidDevice(f"Device {self.name} reports max_brightness {value}")
        return value

    def write(self, value: int) -> None:
        # Open without O_CREAT so a vanished device fails instead of leaving a stray file.
        try:
            fd = os.open(self._brightness, os.O_WRONLY | os.O_TRUNC)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(int(value)))
        except FileNotFoundError as e:
            raise InvalidDevice(f"Device {self.name} does not exist") from e
        except OSError as e:
            raise IoError(f"Can't write {self._brightness}: {e}") from e

    def is_backlight(self) -> bool:
        return self.device_class == "backlight"

    def read_actual(self) -> int | None:
        try:
            return self._read_int(self.sysfs_dir / "actual_brightness")
        except (InvalidDevice, IoError):
            return None

    def power_mode(self) -> str | None:
        try:
            raw = int((self.sysfs_dir / "bl_power").read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None
        return BL_POWER.get(raw, f"unknown ({raw})")

    def backlight_type(self) -> str | None:
        try:
            return (self.sysfs_dir / "type").read_text(encoding="utf-8").strip()
        except OSError:
            return None


def _looks_like_device(path: Path) -> bool:
    return (path / "brightness").is_file() and (path / "max_brightness").is_file()


def list_devices(root: Path = SYSFS_CLASS_ROOT) -> dict[str, list[SysfsDevice]]:
    out: dict[str, list[SysfsDevice]] = {}
    for cls in DEVICE_CLASSES:
        class_dir = root / cls
        if not class_dir.is_dir():
            continue
        devices = [SysfsDevice(p) for p in sorted(class_dir.iterdir()) if _looks_like_device(p)]
        if devices:
            out[cls] = devices
    return out


def resolve_device(name: str | None, root: Path = SYSFS_CLASS_ROOT) -> SysfsDevice:
    """Find a device by name in backlight/ then leds/; default to the first backlight."""

    if name:
        if "/" in name or name in (".", ".."):
            raise InvalidDevice(f"Invalid device name: {name!r}")
        for cls in DEVICE_CLASSES:
            p = root / cls / name
            if _looks_like_device(p):
                return SysfsDevice(p)
        raise InvalidDevice(f"No device named {name!r} available")

    backlights = list_devices(root).get("backlight", [])
    if not backlights:
        raise InvalidDevice("No backlight device available")
    return backlights[0]
