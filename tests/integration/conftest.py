"""Pytest fixtures for integration tests.

Tests run against a file-backed SQLite database in the test's temporary
directory. A file (rather than :memory:) lets the tracker open its own
sessions on separate connections, exactly as it does in production.

Setup data must be committed before the tracker runs; helper factories
below do that.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from waymark.config import WaymarkConfig
from waymark.database.models import Base
from waymark.database.models.phase import PhaseStatus
from waymark.database.models.project import ProjectStatus
from waymark.database.queries.milestone import create_milestone
from waymark.database.queries.phase import create_phase
from waymark.database.queries.project import create_project
from waymark.roadmap.alerts import RoadmapAlerter
from waymark.roadmap.tracker import RoadmapTracker
from waymark.web.app import create_app, init_app_state

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

ProjectFactory = Callable[..., Awaitable[UUID]]
PhaseFactory = Callable[..., Awaitable[UUID]]


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def now() -> datetime:
    """The fixed time every tracker in these tests reads."""
    return NOW


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'waymark.db'}"


@pytest_asyncio.fixture
async def engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with the full schema."""
    test_engine = create_async_engine(database_url, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session for tests that exercise query functions directly."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def tracker(session_factory: async_sessionmaker[AsyncSession]) -> RoadmapTracker:
    return RoadmapTracker(session_factory, clock=fixed_clock)


@pytest.fixture
def alerter() -> RoadmapAlerter:
    return RoadmapAlerter()


@pytest.fixture
def make_project(session_factory: async_sessionmaker[AsyncSession]) -> ProjectFactory:
    """Return a factory that commits a project and returns its id."""

    async def _make(
        name: str = "Roadmap Project",
        status: ProjectStatus = ProjectStatus.planning,
        **kwargs: Any,
    ) -> UUID:
        async with session_factory() as session:
            async with session.begin():
                project = await create_project(session, name=name, status=status, **kwargs)
            return project.id

    return _make


@pytest.fixture
def make_phase(session_factory: async_sessionmaker[AsyncSession]) -> PhaseFactory:
    """Return a factory that commits a phase with milestones and returns its id.

    ``milestones`` is a list of completion flags, one per milestone.
    """

    async def _make(
        project_id: UUID,
        name: str = "Phase",
        milestones: list[bool] | None = None,
        status: PhaseStatus = PhaseStatus.not_started,
        **kwargs: Any,
    ) -> UUID:
        async with session_factory() as session:
            async with session.begin():
                phase = await create_phase(
                    session, project_id=project_id, name=name, status=status, **kwargs
                )
                for index, done in enumerate(milestones or []):
                    await create_milestone(
                        session,
                        phase_id=phase.id,
                        name=f"{name} milestone {index + 1}",
                        created_at=NOW,
                        is_completed=done,
                    )
            return phase.id

    return _make


@pytest.fixture
def app_config() -> WaymarkConfig:
    return WaymarkConfig()


@pytest.fixture
def app(
    app_config: WaymarkConfig,
    session_factory: async_sessionmaker[AsyncSession],
) -> FastAPI:
    """App wired to the test database and a fixed clock.

    ASGITransport does not run the lifespan, so app state is set up here.
    """
    application = create_app(app_config)
    init_app_state(application, session_factory)
    application.state.tracker = RoadmapTracker.from_config(
        session_factory, app_config.tracking, clock=fixed_clock
    )
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
