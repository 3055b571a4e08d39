"""Roadmap sync CLI commands.

Run the scheduled jobs by hand, e.g. from a system cron:

    waymark sync daily
    waymark sync all
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from waymark.roadmap.jobs import run_daily_roadmap_sync, sync_all_projects

app = typer.Typer(help="Roadmap sync commands")
console = Console()


def _print_report(title: str, counters: dict[str, object]) -> None:
    table = Table(title=title)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for key, value in counters.items():
        if key != "errors":
            table.add_row(key.replace("_", " "), str(value))
    console.print(table)


@app.command()
def daily() -> None:
    """Recalculate every unfinished phase and raise delay alerts."""
    from waymark.main import run_in_context

    report = run_in_context(
        lambda ctx: run_daily_roadmap_sync(ctx.tracker, ctx.alerter, ctx.session_factory)
    )
    _print_report("Daily Roadmap Sync", report.as_dict())

    for error in report.errors:
        console.print(f"[red]{error}[/red]")
    if report.errors:
        raise typer.Exit(code=1)


@app.command("all")
def all_projects() -> None:
    """Recalculate every phase of every project."""
    from waymark.main import run_in_context

    report = run_in_context(lambda ctx: sync_all_projects(ctx.tracker, ctx.session_factory))
    _print_report("Project Sync", report.as_dict())

    for error in report.errors:
        console.print(f"[red]{error}[/red]")
    if report.errors:
        raise typer.Exit(code=1)
