from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest


def make_sysfs_device(
    root: Path, name: str, current: int, maximum: int, cls: str = "backlight"
) -> Path:
    d = root / cls / name
    d.mkdir(parents=True)
    (d / "brightness").write_text(f"{current}\n", encoding="utf-8")
    (d / "max_brightness").write_text(f"{maximum}\n", encoding="utf-8")
    return d


@dataclass
class FakeDevice:
    name: str
    current: int
    maximum: int
    writes: list[int] = field(default_factory=list)
    fail_write: Exception | None = None

    def read_current(self) -> int:
        return self.current

    def read_max(self) -> int:
        return self.maximum

    def write(self, value: int) -> None:
        if self.fail_write is not None:
            raise self.fail_write
        self.writes.append(value)
        self.current = value


@pytest.fixture
def sysfs_root(tmp_path: Path) -> Path:
    root = tmp_path / "sys" / "class"
    make_sysfs_device(root, "intel_backlight", 400, 1000)
    make_sysfs_device(root, "input3::capslock", 0, 1, cls="leds")
    return root
