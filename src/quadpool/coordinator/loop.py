"""Bag-of-tasks coordinator for adaptive quadrature.

The coordinator seeds a LIFO task stack with the whole domain, hands
tasks to idle workers on demand, and folds every reply back in: a split
pushes two child tasks, an accepted leaf adds to the total. Each loop
iteration is receive -> update state -> redispatch -> test termination.

Termination is tested after redispatch, never merely when the stack
empties: the stack is often empty while busy workers are still computing
children that will refill it. The loop exits only when the stack is
empty, no worker is busy and no split is half-received.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, TypeVar

from quadpool.coordinator.state import (
    Accumulator,
    CoordinatorState,
    TaskQueue,
    WorkerSlot,
)
from quadpool.exceptions import (
    ConfigError,
    CoordinatorError,
    EvaluationError,
    PrecisionUnreachableError,
    ProtocolError,
)
from quadpool.messages import RESULT_KINDS, Message, MessageKind
from quadpool.models.interval import Interval, PartialResult, Task
from quadpool.models.result import IntegrationResult, IntegrationStats, PrecisionReport

if TYPE_CHECKING:
    from quadpool.channel.base import Channel, NodeID
    from quadpool.messages import Envelope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Coordinator:
    """Owns the task stack, the worker slots and the accumulator.

    Workers become dispatchable once their READY arrives; the slot
    mapping grows as they join, keyed by NodeID.

    Usage::

        coordinator = Coordinator(channel, epsilon=1e-3)
        coordinator.seed(Interval(0.0, 1.0))
        value = coordinator.run()
    """

    def __init__(
        self,
        channel: Channel,
        epsilon: float,
        *,
        strict: bool = False,
        record_leaves: bool = False,
        recv_timeout: float | None = None,
    ) -> None:
        self._channel = channel
        self._epsilon = epsilon
        self._strict = strict
        self._recv_timeout = recv_timeout
        self._queue = TaskQueue()
        self._slots: dict[NodeID, WorkerSlot] = {}
        self._pending_legs: dict[NodeID, Interval] = {}
        self._accumulator = Accumulator(record_leaves=record_leaves)
        self._reports: list[PrecisionReport] = []
        self._domain: Interval | None = None
        self._state = CoordinatorState.IDLE
        self._shut_down = False
        self.stats = IntegrationStats()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def total(self) -> float:
        """Sum of every leaf folded so far."""
        return self._accumulator.total

    @property
    def slots(self) -> dict[NodeID, WorkerSlot]:
        return dict(self._slots)

    @property
    def reports(self) -> list[PrecisionReport]:
        return list(self._reports)

    @property
    def finished(self) -> bool:
        """Global fixed point: nothing queued, in flight or half-split."""
        return (
            not self._queue
            and not self._pending_legs
            and not any(slot.busy for slot in self._slots.values())
        )

    def seed(self, domain: Interval) -> None:
        """Initialize the stack with one task covering ``domain``.

        Raises:
            ConfigError: If the channel addresses no workers.
            CoordinatorError: If the coordinator was already seeded.
        """
        if len(self._channel.node_ids) < 1:
            raise ConfigError("Worker pool must contain at least one worker")
        if self._state != CoordinatorState.IDLE:
            raise CoordinatorError(f"Cannot seed a coordinator in state {self._state.value}")
        self._domain = domain
        self._queue.push(Task(domain, self._epsilon, depth=0))
        self.stats.peak_queue = self._queue.peak
        self._state = CoordinatorState.SEEDED

    def run(self) -> float:
        """Dispatch until the global fixed point holds; return the total.

        Shutdown is broadcast on every exit path.

        Raises:
            CoordinatorError: If ``seed()`` was not called.
            ChannelError: If a worker is lost or misbehaves.
            EvaluationError: If the integrand fails inside a worker.
            PrecisionUnreachableError: In strict mode, if any subinterval
                hit the precision guard.
        """
        if self._state != CoordinatorState.SEEDED:
            raise CoordinatorError(f"Cannot run a coordinator in state {self._state.value}")
        self._state = CoordinatorState.RUNNING
        logger.info(
            "Integrating over %s with epsilon=%g on %d workers",
            self._domain, self._epsilon, len(self._channel.node_ids),
        )

        try:
            while True:
                envelope = self._channel.recv(self._recv_timeout)
                self._handle(envelope)
                self._dispatch()
                if self.finished:
                    break
        except BaseException:
            self._state = CoordinatorState.FAILED
            self._shutdown_after_failure()
            raise

        self.shutdown()
        self._state = CoordinatorState.FINISHED
        self.stats.leaves = self._accumulator.count
        logger.info(
            "Finished: total=%r leaves=%d splits=%d messages=%d peak_queue=%d",
            self.total, self.stats.leaves, self.stats.splits,
            self.stats.messages, self.stats.peak_queue,
        )

        if self._strict and self._reports:
            raise PrecisionUnreachableError(self.reports)
        return self.total

    def shutdown(self) -> None:
        """Send TERMINATE to every worker. Later calls are no-ops."""
        if self._shut_down:
            return
        self._shut_down = True
        for node_id in self._channel.node_ids:
            self._channel.send(node_id, Message.terminate())
        logger.debug("Shutdown sent to %d workers", len(self._channel.node_ids))

    def result(self, elapsed: float = 0.0) -> IntegrationResult:
        """Snapshot the run as an IntegrationResult."""
        if self._domain is None:
            raise CoordinatorError("Coordinator was never seeded")
        return IntegrationResult(
            value=self.total,
            domain=self._domain,
            epsilon=self._epsilon,
            workers=len(self._channel.node_ids),
            elapsed=elapsed,
            stats=self.stats,
            unreachable=tuple(self._reports),
            leaves=tuple(self._accumulator.leaves),
        )

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _handle(self, envelope: Envelope) -> None:
        """Fold one worker message into the coordinator state."""
        sender, msg = envelope.sender, envelope.message
        self.stats.messages += 1
        slot = self._slots.get(sender)

        if msg.kind == MessageKind.READY:
            if slot is None:
                self._slots[sender] = WorkerSlot(sender)
                self.stats.workers_joined += 1
                logger.info("%s joined the pool", sender)
            elif slot.busy:
                raise ProtocolError("READY received from a busy worker", node_id=sender)
            return

        if msg.kind not in RESULT_KINDS:
            raise ProtocolError(f"Unexpected {msg.kind.name} message", node_id=sender)
        if slot is None or not slot.busy or slot.task is None:
            raise ProtocolError(
                f"{msg.kind.name} received from a worker holding no task", node_id=sender
            )
        task = slot.task

        if msg.kind == MessageKind.SPLIT_LEG:
            leg = self._decode(sender, msg.leg_interval)
            first = self._pending_legs.pop(sender, None)
            if first is None:
                # Worker stays busy until the second leg lands.
                self._pending_legs[sender] = leg
                return
            self._push_children(sender, task, first, leg)
        elif msg.kind == MessageKind.SPLIT:
            self._push_children(sender, task, *self._decode(sender, msg.split_children))
        elif msg.kind == MessageKind.DONE:
            self._fold(task, msg.c, reached=True)
        elif msg.kind == MessageKind.UNREACHABLE:
            self._fold(task, msg.c, reached=False)
            report = PrecisionReport(task.interval, task.depth, msg.c, sender)
            self._reports.append(report)
            self.stats.unreachable += 1
            logger.warning(
                "Precision unreachable on %s at depth %d (estimate %g, %s)",
                task.interval, task.depth, msg.c, sender,
            )
        else:
            raise EvaluationError(sender, task.interval, msg.detail)

        slot.release()

    @staticmethod
    def _decode(sender: NodeID, decoder: Callable[[], T]) -> T:
        """Run a message decoder, blaming ``sender`` for malformed bounds."""
        try:
            return decoder()
        except ConfigError as e:
            raise ProtocolError(f"Malformed split record: {e}", node_id=sender) from e

    def _push_children(
        self, sender: NodeID, parent: Task, left: Interval, right: Interval
    ) -> None:
        if (
            left.lower != parent.interval.lower
            or right.upper != parent.interval.upper
            or left.upper != right.lower
        ):
            raise ProtocolError(
                f"Split children {left} {right} do not partition {parent.interval}",
                node_id=sender,
            )
        self._queue.push(Task(left, parent.epsilon, parent.depth + 1))
        self._queue.push(Task(right, parent.epsilon, parent.depth + 1))
        self.stats.splits += 1
        self.stats.peak_queue = max(self.stats.peak_queue, self._queue.peak)
        logger.debug("Split %s at %g", parent.interval, left.upper)

    def _fold(self, task: Task, value: float, *, reached: bool) -> None:
        self._accumulator.add(
            PartialResult(task.interval, value, task.depth, reached_precision=reached)
        )
        logger.debug("Folded %s -> %g", task.interval, value)

    def _dispatch(self) -> None:
        """Give one task to each idle worker while the stack has any."""
        for slot in self._slots.values():
            if not self._queue:
                return
            if slot.busy:
                continue
            task = self._queue.pop()
            self._channel.send(slot.id, Message.assign(task))
            slot.assign(task)
            self.stats.dispatched += 1

    def _shutdown_after_failure(self) -> None:
        try:
            self.shutdown()
        except Exception:
            logger.debug("Shutdown after failure did not complete", exc_info=True)
