"""Project CLI commands.

Create and list projects, show a project's roadmap and recalculate every
phase of a project.
"""

from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from waymark.database.models.project import ProjectStatus
from waymark.database.queries.phase import list_phases
from waymark.database.queries.project import create_project, get_project, list_projects
from waymark.errors import ProjectNotFoundError, TrackingError
from waymark.roadmap.summary import summarize_roadmap

app = typer.Typer(help="Project commands")
console = Console()

STATUS_STYLES = {
    "not_started": "dim",
    "in_progress": "cyan",
    "completed": "green",
    "delayed": "red",
    "blocked": "yellow",
}


def _parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[red]Invalid ID:[/red] {value}")
        raise typer.Exit(code=1) from None


@app.command()
def create(
    name: Annotated[str, typer.Argument(help="Project name")],
    description: Annotated[
        Optional[str],
        typer.Option("--description", "-d", help="Project description"),
    ] = None,
) -> None:
    """Create a new project in planning."""
    from waymark.main import run_in_context

    async def _create(ctx):
        async with ctx.session_factory() as session:
            async with session.begin():
                return await create_project(session, name=name, description=description)

    try:
        project = run_in_context(_create)
    except SQLAlchemyError as e:
        console.print(f"[red]Error creating project:[/red] {e}")
        raise typer.Exit(code=1) from e

    panel = Panel(
        f"[green]Project created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {project.id}\n"
        f"[bold]Name:[/bold] {project.name}\n"
        f"[bold]Status:[/bold] {project.status.value}",
        title="Project Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_command(
    status: Annotated[
        Optional[str],
        typer.Option("--status", "-s", help="Filter by status"),
    ] = None,
) -> None:
    """List projects."""
    from waymark.main import run_in_context

    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in ProjectStatus)
            console.print(f"[red]Invalid status:[/red] {status}. Valid values: {valid}")
            raise typer.Exit(code=1) from None

    async def _list(ctx):
        async with ctx.session_factory() as session:
            return await list_projects(session, status_filter=status_filter)

    projects = run_in_context(_list)

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Status")
    for project in projects:
        table.add_row(str(project.id), project.name, project.status.value)
    console.print(table)


@app.command()
def roadmap(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show a project's phases with progress and status."""
    from waymark.main import run_in_context

    pid = _parse_id(project_id)

    async def _load(ctx):
        async with ctx.session_factory() as session:
            project = await get_project(session, pid)
            if project is None:
                raise ProjectNotFoundError(pid)
            return project, await list_phases(session, project_id=pid)

    try:
        project, phases = run_in_context(_load)
    except (TrackingError, SQLAlchemyError) as e:
        console.print(f"[red]Error loading roadmap:[/red] {e}")
        raise typer.Exit(code=1) from e

    summary = summarize_roadmap(phases)
    console.print(
        f"[bold]{project.name}[/bold] ({project.status.value}) "
        f"{summary.completed_phases}/{summary.total_phases} phases completed, "
        f"{summary.overall_progress:g}% overall"
    )

    if not phases:
        console.print("[yellow]No phases defined[/yellow]")
        return

    table = Table(title="Roadmap")
    table.add_column("#", justify="right")
    table.add_column("Phase", style="bold")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Milestones", justify="right")
    table.add_column("Target end", style="dim")

    for phase in phases:
        done = sum(1 for m in phase.milestones if m.is_completed)
        style = STATUS_STYLES.get(phase.status.value, "white")
        marker = " *" if summary.current_phase is phase else ""
        table.add_row(
            str(phase.phase_order),
            f"{phase.name}{marker}",
            f"[{style}]{phase.status.value}[/{style}]",
            f"{phase.progress_percentage or 0:g}%",
            f"{done}/{len(phase.milestones)}",
            phase.target_end_date.strftime("%Y-%m-%d") if phase.target_end_date else "-",
        )
    console.print(table)


@app.command()
def recalc(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Recalculate every phase of a project."""
    from waymark.main import run_in_context

    pid = _parse_id(project_id)

    try:
        outcome = run_in_context(lambda ctx: ctx.tracker.recalculate_project_phases(pid))
    except TrackingError as e:
        console.print(f"[red]Recalculation failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(
        f"[green]Recalculated {len(outcome.results)} phase(s)[/green]"
        + (f", [red]{len(outcome.failures)} failed[/red]" if outcome.failures else "")
    )
    for result in outcome.results:
        console.print(f"  {result.phase_id}: {result.progress:g}% {result.status.value}")
    for phase_id, message in outcome.failures.items():
        console.print(f"  [red]{phase_id}: {message}[/red]")

    if outcome.failures:
        raise typer.Exit(code=1)
