"""Worker: resolves one task at a time on behalf of the coordinator.

A worker announces itself once, then blocks on its mailbox. Each ASSIGN
is answered with exactly one reply (or, in ``legs`` split mode, one
two-record reply): DONE, SPLIT, UNREACHABLE or ERROR. Workers keep no
state between tasks.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from quadpool.messages import Message, MessageKind
from quadpool.models.config import OracleSettings, SplitMode, WorkerLimits
from quadpool.oracle import TrapezoidOracle

if TYPE_CHECKING:
    from quadpool.channel.base import WorkerEndpoint
    from quadpool.integrands import Integrand
    from quadpool.models.interval import Task
    from quadpool.oracle import QuadratureOracle

logger = logging.getLogger(__name__)

# Units in the last place two estimates may differ by and still count as
# equal. The 1000-panel reference can round a few dozen ulps away from the
# single trapezoid even where both are exact, e.g. for a constant integrand.
ROUNDING_ULPS = 64


def agree_to_rounding(approx: float, ref: float) -> bool:
    """True if the two estimates differ only by floating-point rounding."""
    scale = max(abs(approx), abs(ref))
    # NaN and inf give a NaN difference, which compares False.
    return abs(ref - approx) <= ROUNDING_ULPS * math.ulp(scale)


class Outcome(str, enum.Enum):
    """How a task was resolved."""

    DONE = "done"
    SPLIT = "split"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True)
class Resolution:
    """Decision for one task.

    Attributes:
        outcome: Accept, bisect, or give up at the precision guard.
        value: Coarse estimate (meaningful for DONE and UNREACHABLE).
        mid: Split point (meaningful for SPLIT).
    """

    outcome: Outcome
    value: float = 0.0
    mid: float = 0.0


def resolve(task: Task, oracle: QuadratureOracle, limits: WorkerLimits) -> Resolution:
    """Apply the accept/split test to one task.

    The coarse estimate is accepted once it agrees with the reference
    within ``task.epsilon``, or to floating-point resolution, since no
    split can tighten that. Otherwise the task is bisected, unless the
    precision guard forbids it: the depth limit is reached, the children
    would be narrower than ``limits.min_width``, or the midpoint no longer
    falls strictly inside the interval.
    """
    interval = task.interval
    approx = oracle.approximate(interval)
    ref = oracle.reference(interval)

    if oracle.within_tolerance(approx, ref, task.epsilon) or agree_to_rounding(approx, ref):
        return Resolution(Outcome.DONE, value=approx)

    mid = oracle.midpoint(interval)
    if (
        task.depth >= limits.max_depth
        or not (interval.lower < mid < interval.upper)
        or min(mid - interval.lower, interval.upper - mid) < limits.min_width
    ):
        return Resolution(Outcome.UNREACHABLE, value=approx)

    return Resolution(Outcome.SPLIT, mid=mid)


class Worker:
    """Serves tasks from a coordinator over a WorkerEndpoint.

    Usage::

        worker = Worker(endpoint, TrapezoidOracle(integrand))
        worker.announce_ready()
        worker.serve()
    """

    def __init__(
        self,
        endpoint: WorkerEndpoint,
        oracle: QuadratureOracle,
        limits: WorkerLimits | None = None,
        split_mode: SplitMode = "atomic",
    ) -> None:
        self._endpoint = endpoint
        self._oracle = oracle
        self._limits = limits or WorkerLimits()
        self._split_mode = split_mode
        self.tasks_served = 0

    @property
    def node_id(self) -> str:
        return self._endpoint.node_id

    def announce_ready(self) -> None:
        """Tell the coordinator this worker exists and is idle."""
        self._endpoint.send(Message.ready())

    def serve(self) -> None:
        """Answer assignments until TERMINATE arrives."""
        while True:
            msg = self._endpoint.recv()
            if msg.kind == MessageKind.TERMINATE:
                logger.debug("%s terminating after %d tasks", self.node_id, self.tasks_served)
                return
            if msg.kind != MessageKind.ASSIGN:
                logger.warning(
                    "%s ignoring unexpected %s message", self.node_id, msg.kind.name
                )
                continue
            for reply in self.handle(msg.to_task()):
                self._endpoint.send(reply)

    def handle(self, task: Task) -> list[Message]:
        """Resolve one task into the reply record(s) for the coordinator."""
        self.tasks_served += 1
        try:
            resolution = resolve(task, self._oracle, self._limits)
        except Exception as exc:
            logger.debug("%s failed on %s", self.node_id, task.interval, exc_info=True)
            return [Message.error(task.interval, repr(exc))]

        if resolution.outcome == Outcome.DONE:
            return [Message.done(task.interval, resolution.value)]
        if resolution.outcome == Outcome.UNREACHABLE:
            return [Message.unreachable(task.interval, resolution.value)]

        if self._split_mode == "legs":
            left, right = task.interval.bisect(resolution.mid)
            return [Message.split_leg(left), Message.split_leg(right)]
        return [Message.split(task.interval, resolution.mid)]


def run_worker(
    endpoint: WorkerEndpoint,
    integrand: Integrand,
    limits: WorkerLimits,
    oracle_settings: OracleSettings,
    split_mode: SplitMode = "atomic",
) -> None:
    """Entry point of one worker unit (thread or process).

    Builds the oracle locally, so only picklable settings cross the
    process boundary.
    """
    oracle = TrapezoidOracle(integrand, subdivisions=oracle_settings.subdivisions)
    worker = Worker(endpoint, oracle, limits=limits, split_mode=split_mode)
    worker.announce_ready()
    worker.serve()
