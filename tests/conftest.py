"""Shared test fixtures for quadpool.

Provides config builders, stub oracles, and an in-memory channel whose
workers answer instantly, so coordinator behavior can be driven without
threads or processes.
"""

from __future__ import annotations

import random
from collections import deque

import pytest

from quadpool.channel.base import Channel, WorkerEndpoint, node_name
from quadpool.exceptions import ChannelError
from quadpool.integrands import BUILTIN_INTEGRANDS
from quadpool.messages import Envelope, Message, MessageKind
from quadpool.models.config import IntegrationConfig, WorkerLimits
from quadpool.oracle import TrapezoidOracle
from quadpool.worker import Worker


# ------------------------------------------------------------------
# Config helpers
# ------------------------------------------------------------------


def make_config(**overrides) -> IntegrationConfig:
    """Thread-transport config with fast polling, for tests."""
    settings = dict(
        lower=0.0,
        upper=1.0,
        epsilon=0.1,
        workers=2,
        transport="thread",
        subdivisions=200,
        poll_interval=0.05,
        join_timeout=2.0,
        record_leaves=True,
    )
    settings.update(overrides)
    return IntegrationConfig.build(**settings)


# ------------------------------------------------------------------
# Stub oracles
# ------------------------------------------------------------------


class DisagreeingOracle:
    """Coarse and reference estimates never agree: every task wants a split."""

    def approximate(self, interval):
        return interval.width

    def reference(self, interval):
        return interval.width + 1.0

    def within_tolerance(self, approx, reference, epsilon):
        return abs(reference - approx) <= epsilon

    def midpoint(self, interval):
        return interval.midpoint


class FailingOracle(DisagreeingOracle):
    """Raises on every evaluation."""

    def approximate(self, interval):
        raise ZeroDivisionError("integrand blew up")


# ------------------------------------------------------------------
# Endpoints and channels
# ------------------------------------------------------------------


class RecordingEndpoint(WorkerEndpoint):
    """Worker endpoint with a scripted inbox and a list of sent messages."""

    def __init__(self, node_id: str = "worker-1", inbox: list[Message] | None = None) -> None:
        self.node_id = node_id
        self.inbox = deque(inbox or [])
        self.sent: list[Message] = []

    def send(self, message: Message) -> None:
        self.sent.append(message)

    def recv(self) -> Message:
        return self.inbox.popleft()


class InstantChannel(Channel):
    """In-memory channel whose workers reply the moment they are assigned.

    Every node announces READY up front (in ``join_order``). Replies wait
    in per-node FIFO queues and ``recv`` picks the next sender at random,
    so replies from different workers interleave arbitrarily while each
    worker's own replies stay in order.
    """

    def __init__(
        self,
        workers: int,
        oracle=None,
        *,
        limits: WorkerLimits | None = None,
        split_mode: str = "atomic",
        seed: int = 0,
        join_order: list[int] | None = None,
    ) -> None:
        self._ids = tuple(node_name(i) for i in range(1, workers + 1))
        self._rng = random.Random(seed)
        self._outbound: dict[str, deque[Message]] = {nid: deque() for nid in self._ids}
        self._workers = {
            nid: Worker(
                RecordingEndpoint(nid),
                oracle or TrapezoidOracle(BUILTIN_INTEGRANDS["reference"], 200),
                limits=limits,
                split_mode=split_mode,
            )
            for nid in self._ids
        }
        order = join_order if join_order is not None else list(range(1, workers + 1))
        for i in order:
            self._outbound[node_name(i)].append(Message.ready())
        self.sent: list[tuple[str, Message]] = []
        self.injected: deque[Envelope] = deque()

    @property
    def node_ids(self):
        return self._ids

    def start(self, target, *args):
        pass

    def send(self, node_id, message):
        if node_id not in self._outbound:
            raise ChannelError("Unknown worker", node_id=node_id)
        self.sent.append((node_id, message))
        if message.kind == MessageKind.ASSIGN:
            replies = self._workers[node_id].handle(message.to_task())
            self._outbound[node_id].extend(replies)

    def recv(self, timeout=None):
        if self.injected:
            return self.injected.popleft()
        ready = [nid for nid, q in self._outbound.items() if q]
        if not ready:
            raise ChannelError("No messages pending; coordinator would block forever")
        nid = self._rng.choice(ready)
        return Envelope(nid, self._outbound[nid].popleft())

    def close(self):
        pass

    def terminated(self) -> list[str]:
        return [nid for nid, msg in self.sent if msg.kind == MessageKind.TERMINATE]

    def assigned(self) -> list[str]:
        return [nid for nid, msg in self.sent if msg.kind == MessageKind.ASSIGN]


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def reference_oracle() -> TrapezoidOracle:
    return TrapezoidOracle(BUILTIN_INTEGRANDS["reference"], subdivisions=200)


@pytest.fixture
def quadratic_oracle() -> TrapezoidOracle:
    return TrapezoidOracle(BUILTIN_INTEGRANDS["quadratic"], subdivisions=1000)
