from __future__ import annotations

import argparse
import errno
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from bright import __version__
from bright.config import ConfigError, curve_for, load
from bright.controller import DEFAULT_LOWER, DEFAULT_UPPER, Controller
from bright.errors import BrightError, IoError
from bright.scale import Curve, parse_curve
from bright.store import StateStore
from bright.system.sysfs import SYSFS_CLASS_ROOT, SysfsDevice, list_devices, resolve_device

ENV_DEVICE = "BRIGHT_DEVICE"

UDEV_HINT = (
    "Tip: add a udev rule granting the video group write access to the brightness file, "
    "or run with elevated privileges"
)


def _curve_arg(spec: str) -> Curve:
    try:
        return parse_curve(spec)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bright")
    ap.add_argument("--version", action="version", version=__version__)
    ap.add_argument("-c", "--config")
    ap.add_argument("-v", "--verbose", action="store_true")
    ap.add_argument(
        "--curve", type=_curve_arg, help="Curve for this run (x, x^E or B^x), overrides the config"
    )
    ap.add_argument("--sysfs-root", default=str(SYSFS_CLASS_ROOT), help=argparse.SUPPRESS)

    sub = ap.add_subparsers(dest="cmd", required=True)

    st = sub.add_parser("set", help="Change the brightness, e.g. 50%%, 5%%+, 200-, restore")
    st.add_argument("value")
    st.add_argument("--device")
    st.add_argument("--min", default=DEFAULT_LOWER, help="Lowest value to write (expression)")
    st.add_argument("--max", default=DEFAULT_UPPER, help="Highest value to write (expression)")

    get = sub.add_parser("get", help="Print the current brightness")
    get.add_argument("--device")
    get.add_argument("--percent", action="store_true")

    sub.add_parser("list", aliases=["ls"], help="List backlight and LED devices")

    info = sub.add_parser("info", aliases=["meta"], help="Show device details")
    info.add_argument("--device")

    return ap


def _device(args: argparse.Namespace, cfg: dict[str, Any]) -> SysfsDevice:
    name = args.device or os.environ.get(ENV_DEVICE) or cfg.get("device")
    return resolve_device(name, Path(args.sysfs_root))


def _controller(args: argparse.Namespace, cfg: dict[str, Any], device: SysfsDevice) -> Controller:
    return Controller(StateStore(Path(cfg["state_dir"])), curve_for(cfg, device.name, args.curve))


def _cmd_set(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    device = _device(args, cfg)
    t = _controller(args, cfg, device).apply(device, args.value, args.min, args.max)
    print(f"Updating device: '{t.device}'")
    print(f"Previously: {t.previous}")
    if t.clamped:
        print(f"Requested {t.target}, limited to {t.lower}-{t.upper}")
    print(f"Finished: {t.written}")


def _cmd_get(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    device = _device(args, cfg)
    status = _controller(args, cfg, device).status(device)
    print(f"{status.percent:.0f}%" if args.percent else status.current)


def _cmd_list(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    for cls, devices in list_devices(Path(args.sysfs_root)).items():
        print(f"{cls}:")
        for device in devices:
            try:
                status = _controller(args, cfg, device).status(device)
            except BrightError:
                print(f"\t{device.name} {device.sysfs_dir} ?")
                continue
            print(
                f"\t{device.name} {device.sysfs_dir} "
                f"{status.current}/{status.maximum} ({status.percent:.0f}%)"
            )


def _cmd_info(args: argparse.Namespace, cfg: dict[str, Any]) -> None:
    device = _device(args, cfg)
    status = _controller(args, cfg, device).status(device)
    print(f"Device: {device.name} ({device.sysfs_dir})")
    print(f"Current brightness: {status.current} ({status.percent:.0f}%)")
    print(f"Max brightness: {status.maximum}")
    print(f"Curve: {curve_for(cfg, device.name, args.curve)}")
    if device.is_backlight():
        actual = device.read_actual()
        if actual is not None:
            print(f"Actual brightness: {actual}")
        power = device.power_mode()
        if power is not None:
            print(f"Power mode: {power}")
        bl_type = device.backlight_type()
        if bl_type is not None:
            print(f"Type: {bl_type}")


COMMANDS = {
    "set": _cmd_set,
    "get": _cmd_get,
    "list": _cmd_list,
    "ls": _cmd_list,
    "info": _cmd_info,
    "meta": _cmd_info,
}


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = load(args.config)
        COMMANDS[args.cmd](args, cfg)
    except IoError as e:
        if e.errno in (errno.EACCES, errno.EPERM):
            raise SystemExit(f"{e}\n{UDEV_HINT}") from e
        raise SystemExit(str(e)) from e
    except (BrightError, ConfigError) as e:
        raise SystemExit(str(e)) from e
