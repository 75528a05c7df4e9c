"""Trapezoid quadrature oracle.

Pure, stateless estimators used by workers to decide whether a
subinterval is resolved:

- ``approximate``: a single trapezoid over the interval.
- ``reference``: a composite trapezoid with a fixed, high panel count.
  It is the local ground truth for the accept/split decision, not a
  global error certificate.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

import numpy as np

from quadpool.integrands import Integrand, as_integrand

if TYPE_CHECKING:
    from quadpool.models.interval import Interval


@runtime_checkable
class QuadratureOracle(Protocol):
    """Protocol for the estimators a worker consults."""

    def approximate(self, interval: Interval) -> float:
        """Coarse estimate of the integral over ``interval``."""
        ...

    def reference(self, interval: Interval) -> float:
        """Fine estimate used as the local error oracle."""
        ...

    def within_tolerance(self, approx: float, reference: float, epsilon: float) -> bool:
        ...

    def midpoint(self, interval: Interval) -> float:
        ...


class TrapezoidOracle:
    """QuadratureOracle built on the trapezoidal rule.

    Usage::

        from quadpool.integrands import BUILTIN_INTEGRANDS
        oracle = TrapezoidOracle(BUILTIN_INTEGRANDS["quadratic"])
        oracle.reference(Interval(0.0, 1.0))
    """

    def __init__(
        self,
        integrand: Integrand | Callable[[Any], Any],
        subdivisions: int = 1000,
    ) -> None:
        if subdivisions < 1:
            raise ValueError(f"subdivisions must be >= 1, got {subdivisions}")
        self.integrand = as_integrand(integrand)
        self.subdivisions = subdivisions

    def approximate(self, interval: Interval) -> float:
        f = self.integrand
        return 0.5 * interval.width * (f(interval.lower) + f(interval.upper))

    def reference(self, interval: Interval) -> float:
        n = self.subdivisions
        grid = interval.width / n
        xs = interval.lower + np.arange(n + 1, dtype=float) * grid
        xs[-1] = interval.upper
        ys = self.integrand.sample(xs)
        total = ys[0] + ys[-1] + 2.0 * ys[1:-1].sum()
        return float((grid / 2) * total)

    @staticmethod
    def within_tolerance(approx: float, reference: float, epsilon: float) -> bool:
        delta = abs(reference - approx)
        # NaN compares False, so a NaN estimate is never accepted.
        return not math.isnan(delta) and delta <= epsilon

    @staticmethod
    def midpoint(interval: Interval) -> float:
        return interval.midpoint
