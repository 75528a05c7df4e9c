"""High-level entry points.

``integrate`` runs the coordinator over a freshly started worker pool.
``integrate_sequential`` resolves the same bisection tree in this process
with the same decision function; it is the reference the parallel run
must reproduce.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from quadpool.channel.local import create_channel
from quadpool.coordinator.loop import Coordinator
from quadpool.coordinator.state import Accumulator
from quadpool.exceptions import PrecisionUnreachableError
from quadpool.integrands import Integrand, as_integrand
from quadpool.models.config import IntegrationConfig
from quadpool.models.interval import Interval, PartialResult, Task
from quadpool.models.result import IntegrationResult, IntegrationStats, PrecisionReport
from quadpool.oracle import TrapezoidOracle
from quadpool.worker import Outcome, resolve, run_worker

logger = logging.getLogger(__name__)


def integrate(
    integrand: Integrand | Callable[[Any], Any],
    config: IntegrationConfig,
) -> IntegrationResult:
    """Integrate ``integrand`` over ``[config.lower, config.upper]`` in parallel.

    Starts ``config.workers`` worker units on the configured transport,
    runs a Coordinator to completion and tears the pool down.

    Returns:
        IntegrationResult with the value, stats and any precision reports.

    Raises:
        ConfigError: If the domain or settings are invalid.
        ChannelError: If a worker is lost during the run.
        EvaluationError: If the integrand raises inside a worker.
        PrecisionUnreachableError: In strict mode, if the precision
            guard was hit.
    """
    integrand = as_integrand(integrand)
    domain = Interval(config.lower, config.upper)

    channel = create_channel(
        config.transport,
        config.workers,
        start_method=config.start_method,
        poll_interval=config.poll_interval,
        join_timeout=config.join_timeout,
    )
    coordinator = Coordinator(
        channel,
        config.epsilon,
        strict=config.strict,
        record_leaves=config.record_leaves,
        recv_timeout=config.recv_timeout,
    )
    coordinator.seed(domain)

    started = time.perf_counter()
    with channel:
        channel.start(
            run_worker,
            integrand,
            config.limits,
            config.oracle_settings,
            config.split_mode,
        )
        coordinator.run()
    elapsed = time.perf_counter() - started

    return coordinator.result(elapsed)


def integrate_sequential(
    integrand: Integrand | Callable[[Any], Any],
    config: IntegrationConfig,
) -> IntegrationResult:
    """Resolve the bisection tree in-process, without workers.

    Uses the same oracle and decision function as the workers, so its
    value matches ``integrate`` for the same config exactly.
    """
    oracle = TrapezoidOracle(integrand, subdivisions=config.subdivisions)
    limits = config.limits
    domain = Interval(config.lower, config.upper)
    stats = IntegrationStats()
    accumulator = Accumulator(record_leaves=config.record_leaves)
    reports: list[PrecisionReport] = []

    started = time.perf_counter()
    stack = [Task(domain, config.epsilon)]
    while stack:
        stats.peak_queue = max(stats.peak_queue, len(stack))
        task = stack.pop()
        stats.dispatched += 1
        resolution = resolve(task, oracle, limits)

        if resolution.outcome == Outcome.SPLIT:
            stack.extend(task.children(resolution.mid))
            stats.splits += 1
            continue

        reached = resolution.outcome == Outcome.DONE
        accumulator.add(PartialResult(task.interval, resolution.value, task.depth, reached))
        if not reached:
            reports.append(
                PrecisionReport(task.interval, task.depth, resolution.value, "sequential")
            )
            stats.unreachable += 1
    elapsed = time.perf_counter() - started
    stats.leaves = accumulator.count

    if config.strict and reports:
        raise PrecisionUnreachableError(reports)
    return IntegrationResult(
        value=accumulator.total,
        domain=domain,
        epsilon=config.epsilon,
        workers=0,
        elapsed=elapsed,
        stats=stats,
        unreachable=tuple(reports),
        leaves=tuple(accumulator.leaves),
    )
