"""Quadpool exception hierarchy.

All quadpool-specific exceptions inherit from QuadpoolError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quadpool.models.interval import Interval
    from quadpool.models.result import PrecisionReport


class QuadpoolError(Exception):
    """Base exception for all quadpool errors."""


class ConfigError(QuadpoolError):
    """Raised when run configuration is invalid.

    Covers missing or out-of-range settings, a pool that is too small,
    malformed intervals and unknown integrands. Always fatal before any
    task is seeded.
    """


class ParseError(ConfigError):
    """Raised when a numeric command-line argument cannot be parsed."""

    def __init__(self, argument: str, raw: str) -> None:
        self.argument = argument
        self.raw = raw
        super().__init__(f"Invalid value for {argument}: {raw!r} is not a number")


class PrecisionUnreachableError(QuadpoolError):
    """Raised in strict mode when subintervals hit the precision guard.

    Each report names one subinterval whose coarse and reference estimates
    never agreed within epsilon before the depth or width limit.
    """

    def __init__(self, reports: list[PrecisionReport]) -> None:
        self.reports = reports
        first = reports[0] if reports else None
        msg = f"Precision unreachable on {len(reports)} subinterval(s)"
        if first is not None:
            msg += f", first at {first.interval} (depth {first.depth})"
        super().__init__(msg)


class ChannelError(QuadpoolError):
    """Raised when the transport between coordinator and workers fails."""

    def __init__(self, message: str, node_id: str | None = None) -> None:
        self.node_id = node_id
        if node_id is not None:
            message = f"[{node_id}] {message}"
        super().__init__(message)


class ProtocolError(ChannelError):
    """Raised when a worker sends a message the coordinator cannot accept."""


class EvaluationError(QuadpoolError):
    """Raised when the integrand fails inside a worker."""

    def __init__(self, node_id: str, interval: Interval, detail: str) -> None:
        self.node_id = node_id
        self.interval = interval
        self.detail = detail
        super().__init__(
            f"Integrand evaluation failed on {node_id} over {interval}: {detail}"
        )


class CoordinatorError(QuadpoolError):
    """Raised when the coordinator lifecycle is misused."""
