"""Project endpoints for Waymark.

Routes:
    GET  /projects/                          list projects (optional status filter)
    POST /projects/                          create a project
    GET  /projects/{project_id}              read a project
    GET  /projects/{project_id}/roadmap      phases, milestones and roadmap summary
    POST /projects/{project_id}/recalculate  recalculate every phase of the project
    GET  /projects/{project_id}/alerts       roadmap alerts, newest first
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field

from waymark.database.models.alert import AlertKind, AlertSeverity, AlertStatus
from waymark.database.models.project import ProjectStatus
from waymark.database.queries import alert as alert_queries
from waymark.database.queries import phase as phase_queries
from waymark.database.queries import project as project_queries
from waymark.errors import ProjectNotFoundError
from waymark.logging import get_logger
from waymark.roadmap.summary import summarize_roadmap
from waymark.web.dependencies import get_session_factory, get_tracker
from waymark.web.routes.phases import PhaseDetailResponse, RecalculationResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.roadmap.tracker import RoadmapTracker

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.planning
    start_date: datetime | None = None
    target_completion_date: datetime | None = None


class ProjectResponse(BaseModel):
    """Response schema for project data."""

    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    start_date: datetime | None
    target_completion_date: datetime | None
    actual_completion_date: datetime | None
    created_at: Any
    updated_at: Any

    model_config = {"from_attributes": True}


class RoadmapResponse(BaseModel):
    """A project's roadmap with its summary figures."""

    project: ProjectResponse
    phases: list[PhaseDetailResponse]
    overall_progress: float
    total_phases: int
    completed_phases: int
    current_phase_id: UUID | None


class ProjectRecalculationResponse(BaseModel):
    """Outcome of recalculating every phase of a project."""

    project_id: UUID
    results: list[RecalculationResponse]
    failures: dict[UUID, str]


class AlertResponse(BaseModel):
    """Response schema for alert data."""

    id: UUID
    project_id: UUID
    phase_id: UUID | None
    kind: AlertKind
    title: str
    message: str
    severity: AlertSeverity
    status: AlertStatus
    details: dict[str, Any]
    created_at: Any

    model_config = {"from_attributes": True}


def create_projects_router() -> APIRouter:
    """Create the projects router."""
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.get("/", response_model=list[ProjectResponse])
    async def list_projects(
        status: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[ProjectResponse]:
        """List projects, optionally filtered by status.

        Raises:
            HTTPException: 400 if the status filter is not a ProjectStatus.
        """
        status_enum = None
        if status is not None:
            try:
                status_enum = ProjectStatus(status)
            except ValueError:
                valid = [s.value for s in ProjectStatus]
                logger.warning("invalid_status_filter", status=status, valid_values=valid)
                raise HTTPException(
                    status_code=http_status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid status: {status}. Valid values: {valid}",
                ) from None

        async with session_factory() as session:
            projects = await project_queries.list_projects(session, status_filter=status_enum)

        logger.info("projects_listed", count=len(projects), status_filter=status)
        return [ProjectResponse.model_validate(p) for p in projects]

    @router.post(
        "/",
        response_model=ProjectResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_project(
        payload: ProjectCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        async with session_factory() as session:
            async with session.begin():
                project = await project_queries.create_project(
                    session,
                    name=payload.name,
                    description=payload.description,
                    status=payload.status,
                    start_date=payload.start_date,
                    target_completion_date=payload.target_completion_date,
                )
            return ProjectResponse.model_validate(project)

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            return ProjectResponse.model_validate(project)

    @router.get("/{project_id}/roadmap", response_model=RoadmapResponse)
    async def get_roadmap(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> RoadmapResponse:
        """Return the project's phases in order with overall progress."""
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            phases = await phase_queries.list_phases(session, project_id=project_id)
            summary = summarize_roadmap(phases)

            return RoadmapResponse(
                project=ProjectResponse.model_validate(project),
                phases=[PhaseDetailResponse.model_validate(p) for p in phases],
                overall_progress=summary.overall_progress,
                total_phases=summary.total_phases,
                completed_phases=summary.completed_phases,
                current_phase_id=summary.current_phase.id if summary.current_phase else None,
            )

    @router.post("/{project_id}/recalculate", response_model=ProjectRecalculationResponse)
    async def recalculate_project(
        project_id: UUID,
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
    ) -> ProjectRecalculationResponse:
        """Recalculate every phase; per-phase failures are listed, not raised."""
        outcome = await tracker.recalculate_project_phases(project_id)
        return ProjectRecalculationResponse(
            project_id=outcome.project_id,
            results=[RecalculationResponse.model_validate(r) for r in outcome.results],
            failures=outcome.failures,
        )

    @router.get("/{project_id}/alerts", response_model=list[AlertResponse])
    async def list_alerts(
        project_id: UUID,
        status: AlertStatus | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[AlertResponse]:
        async with session_factory() as session:
            project = await project_queries.get_project(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            alerts = await alert_queries.list_alerts(session, project_id, status_filter=status)
            return [AlertResponse.model_validate(a) for a in alerts]

    return router
