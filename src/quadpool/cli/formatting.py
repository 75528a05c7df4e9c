"""Rich formatting helpers for the quadpool CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from quadpool.integrands import Integrand
    from quadpool.models.result import IntegrationResult, PrecisionReport

_RULE = "#" * 34


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_usage(usage: str, console: Console) -> None:
    """Display the missing-arguments hint."""
    console.print("You may be missing some arguments.", highlight=False)
    console.print(escape(usage), highlight=False)


def format_report(
    result: IntegrationResult,
    integrand: Integrand,
    console: Console,
    digits: int = 6,
) -> None:
    """Display the integration report."""
    console.print(_RULE, highlight=False)
    console.print("[bold] Adaptive Quadrature Integration:[/bold]")
    console.print(_RULE, highlight=False)
    console.print(f" • Integral: ∫ {escape(integrand.display)} dx", highlight=False)
    console.print(
        f" •   Bounds: {result.domain.lower:4.2f}, {result.domain.upper:4.2f}",
        highlight=False,
    )
    console.print(f" •    Error: {result.epsilon:g}", highlight=False)
    console.print(f" •      AQI: [green]{result.value:.{digits}f}[/green]", highlight=False)
    console.print(f" •  Runtime: {result.elapsed:.4f} seconds", highlight=False)
    console.print(
        f" •  Workers: {result.workers}  "
        f"[dim]leaves={result.stats.leaves} splits={result.stats.splits} "
        f"peak queue={result.stats.peak_queue}[/dim]",
        highlight=False,
    )

    if result.unreachable:
        console.print()
        console.print(
            f"[yellow]Warning:[/yellow] precision unreachable on "
            f"{len(result.unreachable)} subinterval(s)",
            highlight=False,
        )
        format_precision_reports(list(result.unreachable), console)


def format_precision_reports(
    reports: list[PrecisionReport],
    console: Console,
    limit: int = 10,
) -> None:
    """Display the subintervals that hit the precision guard."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Interval", style="yellow")
    table.add_column("Depth", justify="right")
    table.add_column("Estimate", justify="right", style="green")
    table.add_column("Worker", style="dim")

    for report in reports[:limit]:
        table.add_row(
            escape(str(report.interval)),
            str(report.depth),
            f"{report.estimate:.6g}",
            report.node_id,
        )
    console.print(table)
    if len(reports) > limit:
        console.print(f"[dim]... and {len(reports) - limit} more[/dim]")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
