from __future__ import annotations

import logging
from dataclasses import dataclass

from bright.errors import EvaluationError, NoSavedState
from bright.expression import Environment, evaluate, parse, requires_saved
from bright.scale import LINEAR, Curve, check_max, to_percentage
from bright.store import StateStore
from bright.system.sysfs import Device

logger = logging.getLogger(__name__)

DEFAULT_LOWER = "0"
DEFAULT_UPPER = "100%"


@dataclass(frozen=True)
class Status:
    current: int
    maximum: int
    percent: float


@dataclass(frozen=True)
class Transition:
    device: str
    previous: int
    target: int
    written: int
    maximum: int
    lower: int
    upper: int

    @property
    def clamped(self) -> bool:
        return self.target != self.written


@dataclass
class Controller:
    """Runs one read -> evaluate -> clamp -> save -> write cycle per call.

    Nothing is locked: two processes racing on the same device both save their
    own "previous" value and the last writer decides the final brightness.
    """

    store: StateStore
    curve: Curve = LINEAR

    def status(self, device: Device) -> Status:
        current = device.read_current()
        maximum = device.read_max()
        return Status(current, maximum, to_percentage(current, maximum, self.curve))

    def _saved(self, name: str) -> int | None:
        try:
            return self.store.load(name)
        except NoSavedState:
            return None

    def apply(
        self,
        device: Device,
        expression: str,
        lower: str = DEFAULT_LOWER,
        upper: str = DEFAULT_UPPER,
    ) -> Transition:
        """Set ``device`` from ``expression``, keeping the result within [lower, upper].

        The bounds are expressions too, evaluated against the same snapshot and
        limited to [0, max] themselves.
        """

        name = device.name
        current = device.read_current()
        maximum = device.read_max()
        check_max(maximum)

        node, lo_node, hi_node = parse(expression), parse(lower), parse(upper)
        needs_saved = any(requires_saved(n) for n in (node, lo_node, hi_node))
        env = Environment(
            current=current,
            maximum=maximum,
            saved=self._saved(name) if needs_saved else None,
            curve=self.curve,
            device=name,
        )
        target = evaluate(node, env)
        lo = min(max(evaluate(lo_node, env), 0), maximum)
        hi = min(max(evaluate(hi_node, env), 0), maximum)
        if lo > hi:
            raise EvaluationError(
                f"lower bound {lo} ({lower}) exceeds upper bound {hi} ({upper})"
            )
        written = min(max(target, lo), hi)

        # Saved unconditionally, before the write.
        self.store.save(name, current)
        device.write(written)

        logger.info(
            "%s: %s -> %s (expression %s, resolved %s)", name, current, written, node, target
        )
        return Transition(
            device=name,
            previous=current,
            target=target,
            written=written,
            maximum=maximum,
            lower=lo,
            upper=hi,
        )
