"""Interval and task records.

Interval is the unit of coverage: every point of the integration domain
belongs to exactly one queued, in-flight or folded interval at a time.
Task pairs an interval with the run's error threshold and its bisection
depth.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from quadpool.exceptions import ConfigError


@dataclass(frozen=True)
class Interval:
    """A closed ``[lower, upper]`` sub-region of the integration domain."""

    lower: float
    upper: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lower) and math.isfinite(self.upper)):
            raise ConfigError(
                f"Interval bounds must be finite, got [{self.lower}, {self.upper}]"
            )
        if self.lower > self.upper:
            raise ConfigError(
                f"Interval lower bound {self.lower} exceeds upper bound {self.upper}"
            )

    def __str__(self) -> str:
        return f"[{self.lower:g}, {self.upper:g}]"

    @property
    def width(self) -> float:
        return self.upper - self.lower

    @property
    def midpoint(self) -> float:
        return (self.lower + self.upper) / 2

    def bisect(self, mid: float | None = None) -> tuple[Interval, Interval]:
        """Split at ``mid`` (default: the midpoint) into two adjacent halves.

        The halves share exactly the split point, so their union is this
        interval.
        """
        if mid is None:
            mid = self.midpoint
        return Interval(self.lower, mid), Interval(mid, self.upper)


@dataclass(frozen=True)
class Task:
    """A unit of dispatchable work.

    Attributes:
        interval: The sub-region to integrate.
        epsilon: The run-wide local error threshold.
        depth: Number of bisections between the seed and this task.
    """

    interval: Interval
    epsilon: float
    depth: int = 0

    def children(self, mid: float | None = None) -> tuple[Task, Task]:
        """Return the two child tasks produced by bisecting this one."""
        left, right = self.interval.bisect(mid)
        return (
            Task(left, self.epsilon, self.depth + 1),
            Task(right, self.epsilon, self.depth + 1),
        )


@dataclass(frozen=True)
class PartialResult:
    """An accepted leaf: the estimate for one resolved interval."""

    interval: Interval
    value: float
    depth: int = 0
    reached_precision: bool = True
