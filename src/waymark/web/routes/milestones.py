"""Milestone endpoints for Waymark.

Every mutation (create, update, delete) commits the milestone change and
then recalculates the owning phase. Recalculation problems are logged; the
response still reports the successful mutation.

Routes:
    POST   /milestones/                 create a milestone
    GET    /milestones/{milestone_id}   read a milestone
    PATCH  /milestones/{milestone_id}   update a milestone
    DELETE /milestones/{milestone_id}   delete a milestone
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from fastapi import status as http_status
from pydantic import BaseModel, Field

from waymark.database.models.history import ChangeReason
from waymark.database.queries import milestone as milestone_queries
from waymark.database.queries import phase as phase_queries
from waymark.errors import MilestoneNotFoundError, PhaseNotFoundError
from waymark.logging import get_logger
from waymark.web.dependencies import get_alerter, get_session_factory, get_tracker
from waymark.web.tracking import track_phase_change

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import RoadmapTracker

logger = get_logger(__name__)


class MilestoneCreate(BaseModel):
    """Request schema for creating a milestone."""

    phase_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    deliverables: str | None = None
    target_date: datetime | None = None
    is_completed: bool = False


class MilestoneUpdate(BaseModel):
    """Request schema for updating a milestone. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    deliverables: str | None = None
    target_date: datetime | None = None
    is_completed: bool | None = None


class MilestoneResponse(BaseModel):
    """Response schema for milestone data."""

    id: UUID
    phase_id: UUID
    name: str
    description: str | None
    deliverables: str | None
    target_date: datetime | None
    is_completed: bool
    completed_date: datetime | None
    created_at: Any
    updated_at: Any

    model_config = {"from_attributes": True}


def create_milestones_router() -> APIRouter:
    """Create the milestones router."""
    router = APIRouter(prefix="/milestones", tags=["milestones"])

    @router.post(
        "/",
        response_model=MilestoneResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_milestone(
        payload: MilestoneCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
        alerter: RoadmapAlerter = Depends(get_alerter),  # noqa: B008
    ) -> MilestoneResponse:
        """Create a milestone and recalculate its phase."""
        async with session_factory() as session:
            async with session.begin():
                phase = await phase_queries.get_phase(session, payload.phase_id)
                if phase is None:
                    raise PhaseNotFoundError(payload.phase_id)
                milestone = await milestone_queries.create_milestone(
                    session,
                    phase_id=payload.phase_id,
                    name=payload.name,
                    created_at=tracker.clock(),
                    description=payload.description,
                    deliverables=payload.deliverables,
                    target_date=payload.target_date,
                    is_completed=payload.is_completed,
                )
            response = MilestoneResponse.model_validate(milestone)

        await track_phase_change(
            tracker,
            alerter,
            session_factory,
            payload.phase_id,
            milestone_id=response.id,
            previous_completed=False,
        )
        return response

    @router.get("/{milestone_id}", response_model=MilestoneResponse)
    async def get_milestone(
        milestone_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> MilestoneResponse:
        async with session_factory() as session:
            milestone = await milestone_queries.get_milestone(session, milestone_id)
            if milestone is None:
                raise MilestoneNotFoundError(milestone_id)
            return MilestoneResponse.model_validate(milestone)

    @router.patch("/{milestone_id}", response_model=MilestoneResponse)
    async def update_milestone(
        milestone_id: UUID,
        payload: MilestoneUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
        alerter: RoadmapAlerter = Depends(get_alerter),  # noqa: B008
    ) -> MilestoneResponse:
        """Update a milestone, record completion toggles and recalculate.

        A change of ``is_completed`` writes a manual MilestoneHistory row in
        the same transaction as the update.
        """
        updates = payload.model_dump(exclude_unset=True)
        if updates.get("is_completed", False) is None:
            del updates["is_completed"]

        async with session_factory() as session:
            async with session.begin():
                existing = await milestone_queries.get_milestone(session, milestone_id)
                if existing is None:
                    raise MilestoneNotFoundError(milestone_id)
                previous_completed = existing.is_completed

                now = tracker.clock()
                milestone = await milestone_queries.update_milestone(
                    session, milestone_id, now, **updates
                )
                await tracker.recorder.record_milestone_completion(
                    session, milestone, previous_completed, now, reason=ChangeReason.manual
                )
            response = MilestoneResponse.model_validate(milestone)

        await track_phase_change(
            tracker,
            alerter,
            session_factory,
            response.phase_id,
            milestone_id=response.id,
            previous_completed=previous_completed,
        )
        return response

    @router.delete("/{milestone_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_milestone(
        milestone_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
        alerter: RoadmapAlerter = Depends(get_alerter),  # noqa: B008
    ) -> Response:
        """Delete a milestone and recalculate its phase."""
        async with session_factory() as session:
            async with session.begin():
                milestone = await milestone_queries.delete_milestone(session, milestone_id)
                phase_id = milestone.phase_id

        await track_phase_change(tracker, alerter, session_factory, phase_id)
        return Response(status_code=http_status.HTTP_204_NO_CONTENT)

    return router
