"""
Rendering functions for ghauth output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List, Dict, Any, Optional

console = Console()

_STATUS_STYLES = {
    'cloned': ("✅ Cloned", "green"),
    'updated': ("✅ Updated", "green"),
    'skipped_conflict': ("⚠️ Conflict", "yellow"),
    'failed': ("✗ Failed", "red"),
    'invalid': ("✗ Invalid", "red"),
}


def render_sync_table(results: List[Dict[str, Any]], summary: Optional[Dict[str, Any]] = None) -> None:
    """
    Render reconciliation results as a pretty table.

    Args:
        results: Per-line result dictionaries from a sync run
        summary: Summary dictionary (SyncSummary.to_dict())
    """
    if not results:
        console.print("[yellow]No repositories declared.[/yellow]")
        return

    table = Table(
        title="Repository Sync",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Repository", style="cyan")
    table.add_column("Destination", style="dim")
    table.add_column("Status")
    table.add_column("Details")

    for result in results:
        label, color = _STATUS_STYLES.get(result.get('status'), (result.get('status', '?'), "white"))
        details = result.get('error') or result.get('message') or ""
        if result.get('warnings'):
            details = "; ".join([details] + result['warnings']) if details else "; ".join(result['warnings'])

        table.add_row(
            result.get('repo') or f"line {result.get('line', '?')}",
            result.get('destination', ''),
            f"[{color}]{label}[/{color}]",
            details
        )

    console.print(table)

    if summary:
        print_sync_summary(summary)


def print_sync_summary(summary: Dict[str, Any]) -> None:
    """Print summary statistics for a sync run."""
    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Total: {summary.get('total', 0)}")
    if summary.get('cloned'):
        console.print(f"  [green]Cloned: {summary['cloned']}[/green]")
    if summary.get('updated'):
        console.print(f"  [green]Updated: {summary['updated']}[/green]")
    if summary.get('skipped_conflict'):
        console.print(f"  [yellow]Conflicts: {summary['skipped_conflict']}[/yellow]")
    if summary.get('failed'):
        console.print(f"  [red]Failed: {summary['failed']}[/red]")
    if summary.get('invalid'):
        console.print(f"  [red]Invalid lines: {summary['invalid']}[/red]")
