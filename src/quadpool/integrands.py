"""Integrands as injected evaluation strategies.

The function being integrated is data handed to the workers at startup,
not code compiled into them. An Integrand wraps any ``f(x) -> float``
callable. When the callable also accepts numpy arrays it can be marked
``vectorized`` and the oracle samples it in one call.

Integrands must pickle to reach process workers, so built-ins are
module-level functions and constants are plain dataclass instances.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from quadpool.exceptions import ConfigError


@dataclass(frozen=True)
class Integrand:
    """A named integrand.

    Attributes:
        name: Registry name or import path.
        fn: The callable ``f(x)``.
        vectorized: True if ``fn`` maps numpy arrays elementwise.
        label: Human-readable formula for reports.
    """

    name: str
    fn: Callable[[Any], Any]
    vectorized: bool = False
    label: str = ""

    def __call__(self, x: float) -> float:
        return float(self.fn(x))

    def sample(self, xs: np.ndarray) -> np.ndarray:
        """Evaluate at every node of ``xs``."""
        if self.vectorized:
            ys = np.asarray(self.fn(xs), dtype=float)
            if ys.shape == xs.shape:
                return ys
            # Scalar-returning functions (e.g. constants) broadcast here.
            return np.broadcast_to(ys, xs.shape).astype(float)
        return np.fromiter((self.fn(x) for x in xs), dtype=float, count=len(xs))

    @property
    def display(self) -> str:
        return self.label or self.name


@dataclass(frozen=True)
class ConstantFunction:
    """``f(x) = value`` for scalars and arrays alike."""

    value: float

    def __call__(self, x: Any) -> Any:
        if isinstance(x, np.ndarray):
            return np.full(x.shape, self.value, dtype=float)
        return self.value


# ---------------------------------------------------------------------------
# Built-in functions
# ---------------------------------------------------------------------------


def oscillating(x):
    return np.abs((5 * x) * (np.cos(6 * x) * np.sin(x))) / 20


def quadratic(x):
    return 0.005 * x**2


def linear(x):
    return 0.25 * x + 4


def rectified_cosine(x):
    return np.abs(20 * np.cos(x)) / 4


BUILTIN_INTEGRANDS: dict[str, Integrand] = {
    "reference": Integrand(
        "reference", oscillating, vectorized=True, label="|5x cos(6x) sin(x)| / 20"
    ),
    "quadratic": Integrand("quadratic", quadratic, vectorized=True, label="x^2 / 200"),
    "linear": Integrand("linear", linear, vectorized=True, label="x/4 + 4"),
    "cosine": Integrand(
        "cosine", rectified_cosine, vectorized=True, label="|20 cos(x)| / 4"
    ),
}

DEFAULT_INTEGRAND = "reference"


def constant(value: float) -> Integrand:
    """Build the constant integrand ``f(x) = value``."""
    return Integrand(
        f"constant({value:g})",
        ConstantFunction(float(value)),
        vectorized=True,
        label=f"{value:g}",
    )


def as_integrand(fn: Integrand | Callable[[Any], Any]) -> Integrand:
    """Wrap a bare callable as a scalar (non-vectorized) integrand."""
    if isinstance(fn, Integrand):
        return fn
    name = getattr(fn, "__qualname__", None) or type(fn).__name__
    return Integrand(name, fn)


def resolve_integrand(ref: str) -> Integrand:
    """Resolve a built-in name or a ``module:attribute`` import path.

    Imported callables are treated as scalar functions unless they are
    already Integrand instances.

    Raises:
        ConfigError: If the name is unknown or the import fails.
    """
    if ref in BUILTIN_INTEGRANDS:
        return BUILTIN_INTEGRANDS[ref]

    if ":" not in ref:
        known = ", ".join(sorted(BUILTIN_INTEGRANDS))
        raise ConfigError(
            f"Unknown integrand '{ref}'. Use one of: {known}, or module:attribute"
        )

    module_name, _, attr = ref.partition(":")
    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot load integrand '{ref}': {e}") from e

    if not callable(target):
        raise ConfigError(f"Integrand '{ref}' is not callable")
    if isinstance(target, Integrand):
        return target
    return Integrand(ref, target, label=attr)
