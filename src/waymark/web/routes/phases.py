"""Phase endpoints for Waymark.

Routes:
    POST  /phases/                      create a phase (optionally with milestones)
    GET   /phases/{phase_id}            read a phase with its milestones
    PATCH /phases/{phase_id}            update a phase; manual status and
                                        progress edits are written to history
    POST  /phases/{phase_id}/recalculate  run the roadmap tracker now
    GET   /phases/{phase_id}/history    phase and milestone history
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from pydantic import BaseModel, Field

from waymark.database.models.history import ChangeReason
from waymark.database.models.phase import PhaseStatus
from waymark.database.queries import history as history_queries
from waymark.database.queries import milestone as milestone_queries
from waymark.database.queries import phase as phase_queries
from waymark.database.queries import project as project_queries
from waymark.errors import PhaseNotFoundError, ProjectNotFoundError
from waymark.logging import get_logger
from waymark.web.dependencies import get_alerter, get_session_factory, get_tracker
from waymark.web.routes.milestones import MilestoneResponse
from waymark.web.tracking import track_phase_change

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import RoadmapTracker

logger = get_logger(__name__)


class PhaseMilestone(BaseModel):
    """Milestone supplied inline when creating a phase."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    deliverables: str | None = None
    target_date: datetime | None = None
    is_completed: bool = False


class PhaseCreate(BaseModel):
    """Request schema for creating a phase."""

    project_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    phase_order: int = Field(default=0, ge=0)
    start_date: datetime | None = None
    target_end_date: datetime | None = None
    status: PhaseStatus = PhaseStatus.not_started
    progress_percentage: float | None = Field(default=None, ge=0, le=100)
    milestones: list[PhaseMilestone] = Field(default_factory=list)


class PhaseUpdate(BaseModel):
    """Request schema for updating a phase. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    phase_order: int | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    target_end_date: datetime | None = None
    status: PhaseStatus | None = None
    progress_percentage: float | None = Field(default=None, ge=0, le=100)
    delay_reason: str | None = None


class PhaseResponse(BaseModel):
    """Response schema for phase data."""

    id: UUID
    project_id: UUID
    name: str
    description: str | None
    phase_order: int
    status: PhaseStatus
    progress_percentage: float | None
    start_date: datetime | None
    target_end_date: datetime | None
    end_date: datetime | None
    delay_reason: str | None
    auto_calculated_progress: bool
    last_auto_calculated_at: datetime | None
    created_at: Any
    updated_at: Any

    model_config = {"from_attributes": True}


class PhaseDetailResponse(PhaseResponse):
    """Phase with its milestones."""

    milestones: list[MilestoneResponse]


class RecalculationResponse(BaseModel):
    """Outcome of a phase recalculation."""

    phase_id: UUID
    project_id: UUID
    progress: float
    status: PhaseStatus
    previous_progress: float | None
    previous_status: PhaseStatus
    status_changed: bool

    model_config = {"from_attributes": True}


class PhaseHistoryResponse(BaseModel):
    """One phase history row."""

    id: UUID
    phase_id: UUID
    status: PhaseStatus | None
    previous_status: PhaseStatus | None
    progress_percentage: float | None
    previous_progress: float | None
    change_reason: ChangeReason
    changed_at: datetime

    model_config = {"from_attributes": True}


class MilestoneHistoryResponse(BaseModel):
    """One milestone history row."""

    id: UUID
    milestone_id: UUID
    phase_id: UUID
    is_completed: bool
    previous_completed: bool
    completed_date: datetime | None
    change_reason: ChangeReason
    changed_at: datetime

    model_config = {"from_attributes": True}


class HistoryResponse(BaseModel):
    """Phase history plus the history of its milestones."""

    phase: list[PhaseHistoryResponse]
    milestones: list[MilestoneHistoryResponse]


def create_phases_router() -> APIRouter:
    """Create the phases router."""
    router = APIRouter(prefix="/phases", tags=["phases"])

    @router.post(
        "/",
        response_model=PhaseDetailResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_phase(
        payload: PhaseCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
        alerter: RoadmapAlerter = Depends(get_alerter),  # noqa: B008
    ) -> PhaseDetailResponse:
        """Create a phase. A phase created with milestones is recalculated."""
        async with session_factory() as session:
            async with session.begin():
                project = await project_queries.get_project(session, payload.project_id)
                if project is None:
                    raise ProjectNotFoundError(payload.project_id)

                phase = await phase_queries.create_phase(
                    session,
                    project_id=payload.project_id,
                    name=payload.name,
                    phase_order=payload.phase_order,
                    description=payload.description,
                    start_date=payload.start_date,
                    target_end_date=payload.target_end_date,
                    status=payload.status,
                    progress_percentage=payload.progress_percentage,
                )
                now = tracker.clock()
                for item in payload.milestones:
                    phase.milestones.append(
                        await milestone_queries.create_milestone(
                            session,
                            phase_id=phase.id,
                            name=item.name,
                            created_at=now,
                            description=item.description,
                            deliverables=item.deliverables,
                            target_date=item.target_date,
                            is_completed=item.is_completed,
                        )
                    )
            phase_id = phase.id

        if payload.milestones:
            await track_phase_change(tracker, alerter, session_factory, phase_id)

        async with session_factory() as session:
            phase = await phase_queries.get_phase(session, phase_id)
            return PhaseDetailResponse.model_validate(phase)

    @router.get("/{phase_id}", response_model=PhaseDetailResponse)
    async def get_phase(
        phase_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> PhaseDetailResponse:
        async with session_factory() as session:
            phase = await phase_queries.get_phase(session, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            return PhaseDetailResponse.model_validate(phase)

    @router.patch("/{phase_id}", response_model=PhaseResponse)
    async def update_phase(
        phase_id: UUID,
        payload: PhaseUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
    ) -> PhaseResponse:
        """Update a phase.

        Status and progress edits are manual overrides: they are written to
        phase history with change_reason ``manual`` and a manual progress
        clears the auto-calculated flag until the next recalculation.
        """
        updates = payload.model_dump(exclude_unset=True)
        new_status = updates.pop("status", None)
        new_progress = updates.pop("progress_percentage", None)

        async with session_factory() as session:
            async with session.begin():
                phase = await phase_queries.get_phase(session, phase_id, for_update=True)
                if phase is None:
                    raise PhaseNotFoundError(phase_id)
                now = tracker.clock()

                if updates:
                    phase = await phase_queries.update_phase(session, phase_id, **updates)

                if new_status is not None and new_status != phase.status:
                    previous_status = phase.status
                    await phase_queries.apply_phase_status(session, phase, new_status, now)
                    await tracker.recorder.record_phase_status(
                        session,
                        phase.id,
                        previous_status,
                        new_status,
                        now,
                        reason=ChangeReason.manual,
                    )

                if new_progress is not None:
                    previous_progress = phase.progress_percentage
                    phase = await phase_queries.update_phase(
                        session,
                        phase_id,
                        progress_percentage=new_progress,
                        auto_calculated_progress=False,
                    )
                    await tracker.recorder.record_phase_progress(
                        session,
                        phase.id,
                        previous_progress,
                        new_progress,
                        now,
                        reason=ChangeReason.manual,
                    )

            return PhaseResponse.model_validate(phase)

    @router.post("/{phase_id}/recalculate", response_model=RecalculationResponse)
    async def recalculate_phase(
        phase_id: UUID,
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
    ) -> RecalculationResponse:
        """Recalculate a phase on demand. Errors are returned to the caller."""
        result = await tracker.recalculate_phase(phase_id)
        return RecalculationResponse.model_validate(result)

    @router.get("/{phase_id}/history", response_model=HistoryResponse)
    async def phase_history(
        phase_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> HistoryResponse:
        async with session_factory() as session:
            phase = await phase_queries.get_phase(session, phase_id)
            if phase is None:
                raise PhaseNotFoundError(phase_id)
            phase_rows = await history_queries.list_phase_history(session, phase_id)
            milestone_rows = await history_queries.list_phase_milestone_history(session, phase_id)

        return HistoryResponse(
            phase=[PhaseHistoryResponse.model_validate(r) for r in phase_rows],
            milestones=[MilestoneHistoryResponse.model_validate(r) for r in milestone_rows],
        )

    return router
