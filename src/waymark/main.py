"""Main CLI entry point for Waymark.

This module provides the main Typer application with sub-commands for
running the API server, recalculating phases and projects, and running the
scheduled roadmap syncs by hand.

Usage:
    waymark serve --port 8000
    waymark phase recalc <phase-id>
    waymark project roadmap <project-id>
    waymark sync daily
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console

from waymark.cli import phase as phase_cli
from waymark.cli import project as project_cli
from waymark.cli import sync as sync_cli
from waymark.config import WaymarkConfig, load_config
from waymark.database.connection import get_engine, get_session_factory
from waymark.logging import setup_logging
from waymark.roadmap.alerts import RoadmapAlerter
from waymark.roadmap.tracker import RoadmapTracker

T = TypeVar("T")

app = typer.Typer(
    name="waymark",
    help="Waymark: roadmap auto-tracking",
    no_args_is_help=True,
)

app.add_typer(phase_cli.app, name="phase", help="Inspect and recalculate phases")
app.add_typer(project_cli.app, name="project", help="Manage projects and roadmaps")
app.add_typer(sync_cli.app, name="sync", help="Run roadmap sync jobs")

console = Console()


class AppContext:
    """Application context shared across CLI commands.

    Attributes:
        config: Loaded Waymark configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
        tracker: Roadmap tracker bound to session_factory
        alerter: Roadmap alerter using the configured thresholds
    """

    def __init__(self, config: WaymarkConfig):
        self.config = config
        self.engine = get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)
        self.tracker = RoadmapTracker.from_config(self.session_factory, config.tracking)
        self.alerter = RoadmapAlerter(config.tracking.alert_thresholds)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(config: WaymarkConfig) -> AppContext:
    """Initialize the global application context."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


def run_in_context(work: Callable[[AppContext], Awaitable[T]]) -> T:
    """Run an async command body and dispose of the engine on the same loop.

    Args:
        work: Coroutine function receiving the application context.

    Returns:
        Whatever ``work`` returns.
    """
    ctx = get_app_context()

    async def _runner() -> T:
        try:
            return await work(ctx)
        finally:
            await ctx.engine.dispose()

    return asyncio.run(_runner())


@app.command()
def serve(
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default: web.host)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default: web.port)"),
    ] = None,
) -> None:
    """Start the Waymark API server."""
    import uvicorn

    from waymark.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print("[bold cyan]Starting Waymark API server[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {bind_host}")
    console.print(f"[dim]Port:[/dim] {bind_port}")
    console.print()

    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration, configure logging and build the application context."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if verbose:
        config.logging.level = "DEBUG"
    setup_logging(config.logging, stream=sys.stderr)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if config.database.echo else logging.WARNING
    )

    initialize_context(config)

    if verbose:
        console.print("[dim]Debug logging enabled[/dim]")


if __name__ == "__main__":
    app()
