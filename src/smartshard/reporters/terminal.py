"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from smartshard.models.shard import TestShard
    from smartshard.sharding.builder import ShardReport

console = Console()


_PERFECT_RATE = 100.0
_GOOD_RATE = 50.0
_SECONDS_PER_MINUTE = 60.0


def _cache_rate_color(rate: float) -> str:
    """Return a Rich color name for a cache hit percentage."""
    if rate >= _PERFECT_RATE:
        return "green"
    if rate >= _GOOD_RATE:
        return "yellow"
    return "red"


def _format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string."""
    if seconds >= _SECONDS_PER_MINUTE:
        return f"{seconds / _SECONDS_PER_MINUTE:.1f}m"
    return f"{seconds:.1f}s"


class CLIReporter:
    """Rich terminal output reporter for shard planning."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_shard_report(self, report: ShardReport) -> None:
        """Print the cache hit rate and per-shard times."""
        cache_line, times_line = report.lines()
        color = _cache_rate_color(report.cache_percent)
        self.console.print()
        self.console.print(f"  [{color}]{cache_line}[/{color}]")
        self.console.print(f"  {times_line}")
        self.console.print()

    def print_shards(self, shards: Sequence[TestShard]) -> None:
        """Print a table with one row per shard."""
        table = Table(title="Shards", show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Tests", justify="right")
        table.add_column("Estimated time", justify="right")

        for index, shard in enumerate(shards):
            table.add_row(str(index), str(len(shard.test_methods)), _format_duration(shard.time))

        self.console.print(table)


reporter = CLIReporter()
