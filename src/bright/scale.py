from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from bright.errors import InvalidDevice

# Parameters outside these ranges lose the raw -> percent -> raw round trip.
EXPONENT_RANGE = (0.1, 10.0)
BASE_RANGE = (0.01, 100.0)


def _check_param(what: str, value: float, bounds: tuple[float, float]) -> None:
    lo, hi = bounds
    if not math.isfinite(value) or not lo <= value <= hi:
        raise ValueError(f"{what} must be within {lo:g}..{hi:g}: {value}")


class Curve(Protocol):
    """Maps perceived brightness to device brightness on the unit interval."""

    def to_actual(self, perceived: float) -> float: ...

    def from_actual(self, actual: float) -> float: ...


@dataclass(frozen=True)
class Linear:
    def to_actual(self, perceived: float) -> float:
        return perceived

    def from_actual(self, actual: float) -> float:
        return actual

    def __str__(self) -> str:
        return "x"


@dataclass(frozen=True)
class Power:
    exponent: float

    def __post_init__(self) -> None:
        _check_param("exponent", self.exponent, EXPONENT_RANGE)

    def to_actual(self, perceived: float) -> float:
        return perceived**self.exponent

    def from_actual(self, actual: float) -> float:
        return actual ** (1.0 / self.exponent)

    def __str__(self) -> str:
        return f"x^{self.exponent:g}"


@dataclass(frozen=True)
class Exponential:
    base: float

    def __post_init__(self) -> None:
        _check_param("base", self.base, BASE_RANGE)
        if self.base == 1:
            raise ValueError("base must not be 1")

    def to_actual(self, perceived: float) -> float:
        # (b^x - 1) / (b - 1)
        return math.expm1(perceived * math.log(self.base)) / (self.base - 1.0)

    def from_actual(self, actual: float) -> float:
        return math.log1p(actual * (self.base - 1.0)) / math.log(self.base)

    def __str__(self) -> str:
        return f"{self.base:g}^x"


LINEAR = Linear()


def parse_curve(spec: str) -> Curve:
    """Build a curve from ``x``, ``x^E`` or ``B^x``."""

    s = spec.strip().replace(" ", "").lower()
    try:
        if s == "x":
            return LINEAR
        if s.startswith("x^"):
            return Power(float(s[2:]))
        if s.endswith("^x"):
            return Exponential(float(s[:-2]))
    except ValueError as e:
        raise ValueError(f"invalid curve {spec!r}: {e}") from e
    raise ValueError(f"invalid curve {spec!r}: expected x, x^E or B^x")


def _unit(v: float) -> float:
    return min(1.0, max(0.0, v))


def check_max(maximum: int) -> None:
    if maximum <= 0:
        raise InvalidDevice(f"max brightness must be > 0, got {maximum}")


def to_percentage(raw: int, maximum: int, curve: Curve = LINEAR) -> float:
    check_max(maximum)
    if raw <= 0:
        return 0.0
    if raw >= maximum:
        return 100.0
    return _unit(curve.from_actual(raw / maximum)) * 100.0


def to_raw(percentage: float, maximum: int, curve: Curve = LINEAR) -> int:
    """Percentages outside [0, 100] are clamped; the result is always in [0, max]."""

    check_max(maximum)
    p = _unit(percentage / 100.0)
    if p == 0.0:
        return 0
    if p == 1.0:
        return maximum
    raw = round(_unit(curve.to_actual(p)) * maximum)
    return min(maximum, max(0, raw))
