"""Run statistics and result records."""

from __future__ import annotations

from dataclasses import dataclass, field

from quadpool.models.interval import Interval, PartialResult


@dataclass
class IntegrationStats:
    """Counters maintained by the coordinator during a run.

    Mutable: the coordinator updates it inside its message loop.
    """

    messages: int = 0
    dispatched: int = 0
    splits: int = 0
    leaves: int = 0
    unreachable: int = 0
    peak_queue: int = 0
    workers_joined: int = 0


@dataclass(frozen=True)
class PrecisionReport:
    """A subinterval that hit the precision guard before meeting epsilon."""

    interval: Interval
    depth: int
    estimate: float
    node_id: str


@dataclass(frozen=True)
class IntegrationResult:
    """Final result of an integration run.

    Frozen: the result is immutable once the run completes.
    """

    value: float
    domain: Interval
    epsilon: float
    workers: int
    elapsed: float = 0.0
    stats: IntegrationStats = field(default_factory=IntegrationStats)
    unreachable: tuple[PrecisionReport, ...] = ()
    leaves: tuple[PartialResult, ...] = ()

    @property
    def precise(self) -> bool:
        """True when every leaf met epsilon."""
        return not self.unreachable
