"""Phase CLI commands.

Recalculate a phase on demand and show its change history.
"""

from __future__ import annotations

import json
from typing import Annotated
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from waymark.database.queries.history import list_phase_history, list_phase_milestone_history
from waymark.database.queries.phase import get_phase
from waymark.errors import PhaseNotFoundError, TrackingError

app = typer.Typer(help="Phase commands")
console = Console()


def _parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Invalid ID:[/red] {value}")
        raise typer.Exit(code=1) from None


@app.command()
def recalc(
    phase_id: Annotated[str, typer.Argument(help="Phase ID")],
) -> None:
    """Recalculate a phase's progress and status from its milestones."""
    from waymark.main import run_in_context

    pid = _parse_id(phase_id)

    try:
        result = run_in_context(lambda ctx: ctx.tracker.recalculate_phase(pid))
    except TrackingError as e:
        console.print(f"[red]Recalculation failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    status_line = result.status.value
    if result.status_changed:
        status_line = f"{result.previous_status.value} -> {result.status.value}"

    console.print("[green]Phase recalculated[/green]")
    console.print(f"[bold]Progress:[/bold] {result.progress:g}%")
    console.print(f"[bold]Status:[/bold] {status_line}")
    if result.project_sync is not None and result.project_sync.changed:
        console.print(
            f"[bold]Project:[/bold] {result.project_sync.previous_status.value}"
            f" -> {result.project_sync.status.value}"
        )


@app.command()
def history(
    phase_id: Annotated[str, typer.Argument(help="Phase ID")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show a phase's status, progress and milestone history."""
    from waymark.main import run_in_context

    pid = _parse_id(phase_id)

    async def _load(ctx):
        async with ctx.session_factory() as session:
            phase = await get_phase(session, pid)
            if phase is None:
                raise PhaseNotFoundError(pid)
            return (
                await list_phase_history(session, pid),
                await list_phase_milestone_history(session, pid),
            )

    try:
        phase_rows, milestone_rows = run_in_context(_load)
    except (TrackingError, SQLAlchemyError) as e:
        console.print(f"[red]Error loading history:[/red] {e}")
        raise typer.Exit(code=1) from e

    if format == "json":
        data = {
            "phase": [
                {
                    "changed_at": row.changed_at.isoformat(),
                    "change_reason": row.change_reason.value,
                    "previous_status": row.previous_status.value if row.previous_status else None,
                    "status": row.status.value if row.status else None,
                    "previous_progress": row.previous_progress,
                    "progress_percentage": row.progress_percentage,
                }
                for row in phase_rows
            ],
            "milestones": [
                {
                    "changed_at": row.changed_at.isoformat(),
                    "milestone_id": str(row.milestone_id),
                    "change_reason": row.change_reason.value,
                    "previous_completed": row.previous_completed,
                    "is_completed": row.is_completed,
                }
                for row in milestone_rows
            ],
        }
        console.print_json(json.dumps(data))
        return

    if not phase_rows and not milestone_rows:
        console.print("[yellow]No history recorded[/yellow]")
        return

    table = Table(title="Phase History")
    table.add_column("Changed", style="dim")
    table.add_column("Reason")
    table.add_column("Status")
    table.add_column("Progress", justify="right")

    for row in phase_rows:
        status_cell = ""
        if row.status is not None:
            previous = row.previous_status.value if row.previous_status else "-"
            status_cell = f"{previous} -> {row.status.value}"
        progress_cell = ""
        if row.progress_percentage is not None:
            progress_cell = f"{row.previous_progress or 0:g} -> {row.progress_percentage:g}"
        table.add_row(
            row.changed_at.strftime("%Y-%m-%d %H:%M"),
            row.change_reason.value,
            status_cell,
            progress_cell,
        )
    console.print(table)

    if milestone_rows:
        milestones = Table(title="Milestone History")
        milestones.add_column("Changed", style="dim")
        milestones.add_column("Milestone", no_wrap=True)
        milestones.add_column("Completed")
        for row in milestone_rows:
            milestones.add_row(
                row.changed_at.strftime("%Y-%m-%d %H:%M"),
                str(row.milestone_id)[:8],
                f"{row.previous_completed} -> {row.is_completed}",
            )
        console.print(milestones)
