"""Coordinator package -- the bag-of-tasks scheduler and the state it owns."""

from quadpool.coordinator.loop import Coordinator
from quadpool.coordinator.state import (
    Accumulator,
    CoordinatorState,
    TaskQueue,
    WorkerSlot,
)

__all__ = [
    "Coordinator",
    "CoordinatorState",
    "Accumulator",
    "TaskQueue",
    "WorkerSlot",
]
