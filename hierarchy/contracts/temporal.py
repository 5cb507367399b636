from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class LogSequence:
    """
    Immutable sequence position in the relation log.

    Sequence 0 means "nothing consumed yet"; the first entry is 1.
    """
    value: int

    def __post_init__(self):
        if self.value < 0:
            raise ValueError("LogSequence cannot be negative")

    def next(self) -> 'LogSequence':
        return LogSequence(self.value + 1)

    @staticmethod
    def origin() -> 'LogSequence':
        return LogSequence(0)


@dataclass(frozen=True)
class ReaderId:
    """Handle of one independent reader of the hierarchy event channel."""
    value: int
