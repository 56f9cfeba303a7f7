from __future__ import annotations


class BrightError(Exception):
    """Base class for everything that aborts a brightness change."""


class ParseError(BrightError, ValueError):
    def __init__(self, position: int, reason: str):
        super().__init__(f"{reason} (at position {position})")
        self.position = position
        self.reason = reason


class EvaluationError(BrightError, ValueError):
    pass


class NoSavedState(EvaluationError):
    def __init__(self, device: str):
        super().__init__(f"No saved brightness for device: {device}")
        self.device = device


class InvalidDevice(BrightError):
    pass


class IoError(BrightError):
    """Read/write/persist failure. The OSError, if any, is kept as __cause__."""

    @property
    def errno(self) -> int | None:
        cause = self.__cause__
        return cause.errno if isinstance(cause, OSError) else None
