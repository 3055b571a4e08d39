"""Integration tests for CLI commands.

Each command runs its own event loop, so these tests are synchronous and
seed the database with asyncio.run before invoking the CLI.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TypeVar
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from typer.testing import CliRunner

from waymark.database.models import Base
from waymark.database.models.phase import PhaseStatus
from waymark.database.models.project import ProjectStatus
from waymark.database.queries.milestone import create_milestone
from waymark.database.queries.phase import create_phase, get_phase
from waymark.database.queries.project import create_project, get_project
from waymark.main import app

pytestmark = pytest.mark.integration

T = TypeVar("T")
SEEDED_AT = datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


def _run(url: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    async def _runner() -> T:
        engine = create_async_engine(url)
        try:
            factory = async_sessionmaker(bind=engine, expire_on_commit=False)
            async with factory() as session:
                async with session.begin():
                    return await work(session)
        finally:
            await engine.dispose()

    return asyncio.run(_runner())


async def _create_schema(url: str) -> None:
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Point the CLI at a fresh SQLite file through the environment."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WAYMARK_DATABASE__URL", url)
    monkeypatch.setenv("WAYMARK_LOGGING__FORMAT", "console")
    asyncio.run(_create_schema(url))

    yield url

    # The CLI points the root handler at the runner's captured stderr
    logging.getLogger().handlers.clear()


@pytest.fixture
def seeded(database_url: str) -> dict[str, Any]:
    """A planning project with a half-done phase and an untouched phase."""

    async def _seed(session: AsyncSession) -> dict[str, Any]:
        project = await create_project(session, name="Ward rollout")
        build = await create_phase(session, project_id=project.id, name="Build", phase_order=1)
        for index, done in enumerate([True, False]):
            await create_milestone(
                session,
                phase_id=build.id,
                name=f"Step {index}",
                created_at=SEEDED_AT,
                is_completed=done,
            )
        launch = await create_phase(session, project_id=project.id, name="Launch", phase_order=2)
        return {"project_id": project.id, "build_id": build.id, "launch_id": launch.id}

    return _run(database_url, _seed)


class TestProjectCLI:
    def test_create_project(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["project", "create", "Clinic pilot", "-d", "Two sites"])

        assert result.exit_code == 0
        assert "Project created successfully" in result.stdout
        assert "Clinic pilot" in result.stdout
        assert "planning" in result.stdout

    def test_list_empty(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0
        assert "No projects found" in result.stdout

    def test_list_shows_projects(self, cli_runner, seeded) -> None:
        result = cli_runner.invoke(app, ["project", "list", "--status", "planning"])

        assert result.exit_code == 0
        assert "Ward rollout" in result.stdout

    def test_list_rejects_unknown_status(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["project", "list", "--status", "bogus"])

        assert result.exit_code == 1
        assert "Invalid status" in result.stdout

    def test_roadmap(self, cli_runner, seeded) -> None:
        cli_runner.invoke(app, ["project", "recalc", str(seeded["project_id"])])

        result = cli_runner.invoke(app, ["project", "roadmap", str(seeded["project_id"])])

        assert result.exit_code == 0
        assert "0/2 phases completed" in result.stdout
        assert "Build *" in result.stdout
        assert "Launch" in result.stdout

    def test_roadmap_missing_project(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["project", "roadmap", str(uuid4())])

        assert result.exit_code == 1
        assert "Error loading roadmap" in result.stdout

    def test_recalc_all_phases(self, cli_runner, seeded, database_url) -> None:
        result = cli_runner.invoke(app, ["project", "recalc", str(seeded["project_id"])])

        assert result.exit_code == 0
        assert "Recalculated 2 phase(s)" in result.stdout

        project = _run(database_url, lambda s: get_project(s, seeded["project_id"]))
        assert project.status == ProjectStatus.pilot


class TestPhaseCLI:
    def test_recalc_phase(self, cli_runner, seeded, database_url) -> None:
        result = cli_runner.invoke(app, ["phase", "recalc", str(seeded["build_id"])])

        assert result.exit_code == 0
        assert "Phase recalculated" in result.stdout
        assert "Progress: 50%" in result.stdout
        assert "not_started -> in_progress" in result.stdout
        assert "planning -> pilot" in result.stdout

        phase = _run(database_url, lambda s: get_phase(s, seeded["build_id"]))
        assert phase.status == PhaseStatus.in_progress
        assert phase.progress_percentage == 50.0

    def test_recalc_missing_phase(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["phase", "recalc", str(uuid4())])

        assert result.exit_code == 1
        assert "Recalculation failed" in result.stdout

    def test_recalc_invalid_id(self, cli_runner, database_url) -> None:
        result = cli_runner.invoke(app, ["phase", "recalc", "not-a-uuid"])

        assert result.exit_code == 1
        assert "Invalid ID" in result.stdout

    def test_history_empty(self, cli_runner, seeded) -> None:
        result = cli_runner.invoke(app, ["phase", "history", str(seeded["launch_id"])])

        assert result.exit_code == 0
        assert "No history recorded" in result.stdout

    def test_history_table_after_recalc(self, cli_runner, seeded) -> None:
        cli_runner.invoke(app, ["phase", "recalc", str(seeded["build_id"])])

        result = cli_runner.invoke(app, ["phase", "history", str(seeded["build_id"])])

        assert result.exit_code == 0
        assert "Phase History" in result.stdout
        assert "Milestone History" not in result.stdout

    def test_history_json(self, cli_runner, seeded) -> None:
        cli_runner.invoke(app, ["phase", "recalc", str(seeded["build_id"])])

        result = cli_runner.invoke(
            app, ["phase", "history", str(seeded["build_id"]), "--format", "json"]
        )

        assert result.exit_code == 0
        assert '"change_reason": "auto_calculated"' in result.stdout
        assert '"progress_percentage": 50.0' in result.stdout


class TestSyncCLI:
    def test_daily_sync_marks_overdue_phase(self, cli_runner, database_url) -> None:
        async def _seed(session: AsyncSession) -> UUID:
            project = await create_project(session, name="Late project")
            phase = await create_phase(
                session,
                project_id=project.id,
                name="Overdue",
                target_end_date=datetime.now(timezone.utc) - timedelta(days=3),
            )
            return phase.id

        phase_id = _run(database_url, _seed)

        result = cli_runner.invoke(app, ["sync", "daily"])

        assert result.exit_code == 0
        assert "Daily Roadmap Sync" in result.stdout
        phase = _run(database_url, lambda s: get_phase(s, phase_id))
        assert phase.status == PhaseStatus.delayed

    def test_sync_all(self, cli_runner, seeded) -> None:
        result = cli_runner.invoke(app, ["sync", "all"])

        assert result.exit_code == 0
        assert "Project Sync" in result.stdout
