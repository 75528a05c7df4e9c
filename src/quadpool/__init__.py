"""Quadpool: adaptive quadrature over a message-passing worker pool.

A coordinator hands subinterval tasks to workers on demand; workers either
accept a trapezoid estimate or split the interval in two, and the
coordinator keeps redispatching until no work is queued or in flight.
"""

from quadpool._version import __version__

# Entry points
from quadpool.engine import integrate, integrate_sequential

# Core components
from quadpool.coordinator import Coordinator, CoordinatorState
from quadpool.worker import Worker, resolve
from quadpool.oracle import QuadratureOracle, TrapezoidOracle

# Integrands
from quadpool.integrands import (
    BUILTIN_INTEGRANDS,
    Integrand,
    constant,
    resolve_integrand,
)

# Transport
from quadpool.channel import Channel, ProcessChannel, ThreadChannel, create_channel
from quadpool.messages import Envelope, Message, MessageKind

# Models
from quadpool.models import (
    IntegrationConfig,
    IntegrationResult,
    IntegrationStats,
    Interval,
    PartialResult,
    PrecisionReport,
    Task,
    WorkerLimits,
)

# Exceptions
from quadpool.exceptions import (
    ChannelError,
    ConfigError,
    CoordinatorError,
    EvaluationError,
    ParseError,
    PrecisionUnreachableError,
    ProtocolError,
    QuadpoolError,
)

__all__ = [
    "__version__",
    # Entry points
    "integrate",
    "integrate_sequential",
    # Core
    "Coordinator",
    "CoordinatorState",
    "Worker",
    "resolve",
    "QuadratureOracle",
    "TrapezoidOracle",
    # Integrands
    "BUILTIN_INTEGRANDS",
    "Integrand",
    "constant",
    "resolve_integrand",
    # Transport
    "Channel",
    "ThreadChannel",
    "ProcessChannel",
    "create_channel",
    "Envelope",
    "Message",
    "MessageKind",
    # Models
    "Interval",
    "Task",
    "PartialResult",
    "IntegrationConfig",
    "IntegrationResult",
    "IntegrationStats",
    "PrecisionReport",
    "WorkerLimits",
    # Exceptions
    "QuadpoolError",
    "ConfigError",
    "ParseError",
    "PrecisionUnreachableError",
    "ChannelError",
    "ProtocolError",
    "EvaluationError",
    "CoordinatorError",
]
