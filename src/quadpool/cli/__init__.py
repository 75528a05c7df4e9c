"""Quadpool CLI -- adaptive quadrature from the terminal.

This module is NEVER imported from quadpool/__init__.py.
It is only loaded via the ``quadpool`` entry point defined in pyproject.toml
or ``python -m quadpool``.

The pool size counts the coordinator, like ``mpirun -np``: ``--np 3``
means one coordinator and two workers.
"""

from __future__ import annotations

import logging
import os

import click

from quadpool.cli.formatting import (
    format_error,
    format_precision_reports,
    format_report,
    format_usage,
    get_console,
)
from quadpool.exceptions import (
    ConfigError,
    ParseError,
    PrecisionUnreachableError,
    QuadpoolError,
)


def _default_pool_size() -> int:
    return min(4, os.cpu_count() or 2) + 1


def parse_number(argument: str, raw: str) -> float:
    """Parse a numeric argument, raising ParseError instead of ValueError."""
    try:
        return float(raw)
    except ValueError:
        raise ParseError(argument, raw) from None


def _configure_logging(verbose: int) -> None:
    if not verbose:
        return
    from rich.console import Console
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose > 1 else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("lower", required=False)
@click.argument("upper", required=False)
@click.argument("error", required=False)
@click.option(
    "-n",
    "--np",
    "pool_size",
    type=int,
    default=_default_pool_size,
    envvar="QUADPOOL_NP",
    show_default="min(4, cpus) + 1",
    help="Execution units: 1 coordinator plus workers (at least 2).",
)
@click.option(
    "-f",
    "--function",
    "function",
    default="reference",
    envvar="QUADPOOL_FUNCTION",
    show_default=True,
    help="Built-in integrand name or module:attribute.",
)
@click.option("--max-depth", type=click.IntRange(min=0), default=40, show_default=True,
              help="Bisection depth at which a task is reported instead of split.")
@click.option("--min-width", type=click.FloatRange(min=0.0), default=0.0, show_default=True,
              help="Narrowest child interval a split may produce.")
@click.option("--subdivisions", type=click.IntRange(min=1), default=1000, show_default=True,
              help="Panels of the reference trapezoid estimate.")
@click.option(
    "--transport",
    type=click.Choice(["process", "thread"]),
    default="process",
    envvar="QUADPOOL_TRANSPORT",
    show_default=True,
    help="How worker units are run.",
)
@click.option(
    "--split-mode",
    type=click.Choice(["atomic", "legs"]),
    default="atomic",
    show_default=True,
    help="Send a split as one record, or as two legs reassembled by the coordinator.",
)
@click.option("--strict", is_flag=True, help="Fail if any subinterval cannot reach the error.")
@click.option("--digits", type=click.IntRange(min=0), default=6, show_default=True,
              help="Digits printed after the decimal point of the integral.")
@click.option("-v", "--verbose", count=True, help="Log to stderr (-vv for debug).")
@click.pass_context
def cli(
    ctx: click.Context,
    lower: str | None,
    upper: str | None,
    error: str | None,
    pool_size: int,
    function: str,
    max_depth: int,
    min_width: float,
    subdivisions: int,
    transport: str,
    split_mode: str,
    strict: bool,
    digits: int,
    verbose: int,
) -> None:
    """Integrate f(x) from LOWER to UPPER, splitting until ERROR is met."""
    from quadpool.engine import integrate
    from quadpool.integrands import resolve_integrand
    from quadpool.models.config import IntegrationConfig

    console = get_console()
    if lower is None or upper is None or error is None:
        format_usage(ctx.get_usage(), console)
        raise SystemExit(1)

    _configure_logging(verbose)

    try:
        if pool_size < 2:
            raise ConfigError(
                f"Must have 2 or more execution units, got {pool_size} "
                "(1 coordinator + at least 1 worker)"
            )
        config = IntegrationConfig.build(
            lower=parse_number("LOWER", lower),
            upper=parse_number("UPPER", upper),
            epsilon=parse_number("ERROR", error),
            workers=pool_size - 1,
            max_depth=max_depth,
            min_width=min_width,
            subdivisions=subdivisions,
            transport=transport,
            split_mode=split_mode,
            strict=strict,
        )
        integrand = resolve_integrand(function)
        result = integrate(integrand, config)
    except PrecisionUnreachableError as e:
        format_error(str(e), console)
        format_precision_reports(e.reports, console)
        raise SystemExit(1) from None
    except QuadpoolError as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    format_report(result, integrand, console, digits=digits)
