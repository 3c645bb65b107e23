"""Shared console and formatting utilities."""

import logging
import os

from rich.box import ROUNDED
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from stampede.domain import AggregateMetrics

# Force colors unless explicitly disabled (NO_COLOR standard)
no_color = os.environ.get("NO_COLOR", "").lower() in ("1", "true", "yes")

console = Console(
    highlight=False,
    force_terminal=not no_color,
    no_color=no_color,
)


def success(msg: str) -> None:
    """Print success message."""
    console.print(f"  [green]✓[/green] {msg}")


def error(msg: str) -> None:
    """Print error message."""
    console.print(f"  [red]✗[/red] {msg}")


def warning(msg: str) -> None:
    """Print warning message."""
    console.print(f"  [yellow]![/yellow] {msg}")


def info(msg: str) -> None:
    """Print info message."""
    console.print(f"  [dim]→[/dim] {msg}")


def nl() -> None:
    """Print newline."""
    console.print()


def metrics_table(metrics: AggregateMetrics, *, title: str = "Results") -> Table:
    """Render aggregate metrics as a two-column table."""
    table = Table(title=title, box=ROUNDED, title_justify="left", show_header=False)
    table.add_column("metric", style="dim")
    table.add_column("value", justify="right")
    table.add_row("Total requests", f"{metrics.total_requests:,}")
    table.add_row("Failed requests", f"{metrics.failed_requests:,}")
    table.add_row("Error rate", f"{metrics.error_rate:.2f}%")
    table.add_row("Throughput", f"{metrics.rps:.2f}/s")
    table.add_row("Avg latency", f"{metrics.avg_latency_ms:.2f} ms")
    table.add_row("p95 latency", f"{metrics.p95_latency_ms:.2f} ms")
    table.add_row("p99 latency", f"{metrics.p99_latency_ms:.2f} ms")
    return table


def setup_logging(verbose: bool = False) -> None:
    """Configure clean logging for the CLI."""
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        keywords=[],
    )

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
