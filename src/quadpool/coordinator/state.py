"""State owned exclusively by the coordinator.

The task stack, the worker slots and the accumulator are only ever
touched from inside the coordinator's serial message loop, so none of
them carries a lock.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quadpool.models.interval import PartialResult, Task


class CoordinatorState(str, enum.Enum):
    """States the coordinator moves through during one run."""

    IDLE = "idle"
    SEEDED = "seeded"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass
class WorkerSlot:
    """The coordinator's record of one registered worker.

    ``task`` is the in-flight task while ``busy`` is set.
    """

    id: str
    busy: bool = False
    task: Task | None = None

    def assign(self, task: Task) -> None:
        self.busy = True
        self.task = task

    def release(self) -> Task | None:
        task, self.task = self.task, None
        self.busy = False
        return task


class TaskQueue:
    """LIFO stack of pending tasks.

    Order only changes the traversal of the bisection tree, never the
    result.
    """

    def __init__(self) -> None:
        self._items: list[Task] = []
        self.peak = 0

    def push(self, task: Task) -> None:
        self._items.append(task)
        self.peak = max(self.peak, len(self._items))

    def pop(self) -> Task:
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class Accumulator:
    """Exact running sum of folded leaf values.

    The sum is held as a short list of non-overlapping partials (Shewchuk's
    algorithm, the one behind ``math.fsum``), so it stays exact without
    keeping every leaf value. ``total`` rounds it once, which makes the
    result independent of the order replies arrive in.
    """

    def __init__(self, record_leaves: bool = False) -> None:
        self._partials: list[float] = []
        self._special = 0.0
        self._count = 0
        self._record = record_leaves
        self.leaves: list[PartialResult] = []

    def add(self, leaf: PartialResult) -> None:
        self._count += 1
        if self._record:
            self.leaves.append(leaf)

        x = leaf.value
        if not math.isfinite(x):
            # inf and NaN poison the total; they cannot join the partials.
            self._special += x
            return
        i = 0
        for y in self._partials:
            if abs(x) < abs(y):
                x, y = y, x
            hi = x + y
            lo = y - (hi - x)
            if lo:
                self._partials[i] = lo
                i += 1
            x = hi
        self._partials[i:] = [x]

    @property
    def count(self) -> int:
        return self._count

    @property
    def total(self) -> float:
        if self._special:
            return self._special
        return math.fsum(self._partials)
