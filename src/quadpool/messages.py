"""Message protocol between the coordinator and its workers.

Every message is a fixed three-field numeric record ``(a, b, c)`` plus an
integer kind tag. ASSIGN additionally carries the task depth, and ERROR a
short diagnostic string.

A split travels as one record holding both children: ``a=lower``,
``b=mid``, ``c=upper``. SPLIT_LEG exists for transports that can only
carry one interval per record; the coordinator reassembles the two legs.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from quadpool.models.interval import Interval, Task


class MessageKind(enum.IntEnum):
    """Integer tags of the coordinator/worker protocol."""

    READY = 0
    ASSIGN = 1
    SPLIT = 2
    DONE = 3
    TERMINATE = 4
    SPLIT_LEG = 5
    UNREACHABLE = 6
    ERROR = 7


# Kinds a worker may only send while it holds a task.
RESULT_KINDS: frozenset[MessageKind] = frozenset({
    MessageKind.SPLIT,
    MessageKind.SPLIT_LEG,
    MessageKind.DONE,
    MessageKind.UNREACHABLE,
    MessageKind.ERROR,
})


@dataclass(frozen=True)
class Message:
    """One protocol record."""

    kind: MessageKind
    a: float = 0.0
    b: float = 0.0
    c: float = 0.0
    depth: int = 0
    detail: str = ""

    # -- coordinator -> worker ------------------------------------------

    @classmethod
    def assign(cls, task: Task) -> Message:
        return cls(
            MessageKind.ASSIGN,
            task.interval.lower,
            task.interval.upper,
            task.epsilon,
            depth=task.depth,
        )

    @classmethod
    def terminate(cls) -> Message:
        return cls(MessageKind.TERMINATE)

    # -- worker -> coordinator ------------------------------------------

    @classmethod
    def ready(cls) -> Message:
        return cls(MessageKind.READY)

    @classmethod
    def split(cls, interval: Interval, mid: float) -> Message:
        return cls(MessageKind.SPLIT, interval.lower, mid, interval.upper)

    @classmethod
    def split_leg(cls, child: Interval) -> Message:
        return cls(MessageKind.SPLIT_LEG, child.lower, child.upper)

    @classmethod
    def done(cls, interval: Interval, value: float) -> Message:
        return cls(MessageKind.DONE, interval.lower, interval.upper, value)

    @classmethod
    def unreachable(cls, interval: Interval, estimate: float) -> Message:
        return cls(MessageKind.UNREACHABLE, interval.lower, interval.upper, estimate)

    @classmethod
    def error(cls, interval: Interval, detail: str) -> Message:
        return cls(MessageKind.ERROR, interval.lower, interval.upper, detail=detail)

    # -- decoding --------------------------------------------------------

    def to_task(self) -> Task:
        """Decode an ASSIGN record into the task it carries."""
        if self.kind != MessageKind.ASSIGN:
            raise ValueError(f"Cannot decode a task from {self.kind.name}")
        return Task(Interval(self.a, self.b), epsilon=self.c, depth=self.depth)

    def split_children(self) -> tuple[Interval, Interval]:
        """Decode a SPLIT record into its two child intervals."""
        if self.kind != MessageKind.SPLIT:
            raise ValueError(f"Cannot decode split children from {self.kind.name}")
        return Interval(self.a, self.b), Interval(self.b, self.c)

    def leg_interval(self) -> Interval:
        return Interval(self.a, self.b)


@dataclass(frozen=True)
class Envelope:
    """A message together with the worker that sent it."""

    sender: str
    message: Message
