"""Data models for quadpool: intervals, tasks, configuration and results."""

from quadpool.models.config import (
    IntegrationConfig,
    OracleSettings,
    SplitMode,
    TransportKind,
    WorkerLimits,
)
from quadpool.models.interval import Interval, PartialResult, Task
from quadpool.models.result import IntegrationResult, IntegrationStats, PrecisionReport

__all__ = [
    "Interval",
    "Task",
    "PartialResult",
    "IntegrationConfig",
    "WorkerLimits",
    "OracleSettings",
    "TransportKind",
    "SplitMode",
    "IntegrationStats",
    "IntegrationResult",
    "PrecisionReport",
]
