"""Post-mutation roadmap tracking for the HTTP API.

Milestone and phase mutations commit first; tracking runs afterwards in
its own sessions. A tracking failure is logged and reported as None, never
turned into an HTTP error, because the user's change already succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from waymark.errors import TrackingError
from waymark.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import PhaseRecalculation, RoadmapTracker

logger = get_logger(__name__)


async def track_phase_change(
    tracker: RoadmapTracker,
    alerter: RoadmapAlerter,
    session_factory: async_sessionmaker[AsyncSession],
    phase_id: UUID,
    milestone_id: UUID | None = None,
    previous_completed: bool | None = None,
) -> PhaseRecalculation | None:
    """Recalculate a phase and raise alerts after a committed mutation.

    Args:
        tracker: Roadmap tracker.
        alerter: Roadmap alerter.
        session_factory: Factory for the alert session.
        phase_id: Phase affected by the mutation.
        milestone_id: Milestone that was created or updated, if any.
        previous_completed: That milestone's completion flag before the
            mutation, used for milestone completion alerts.

    Returns:
        The recalculation result, or None if tracking failed.
    """
    try:
        result = await tracker.recalculate_phase(phase_id)
    except (TrackingError, SQLAlchemyError) as exc:
        logger.error("roadmap_tracking_failed", phase_id=str(phase_id), error=str(exc))
        return None

    try:
        async with session_factory() as session:
            async with session.begin():
                await alerter.check_phase_alerts(session, result)
                if milestone_id is not None and previous_completed is not None:
                    await alerter.check_milestone_alerts(session, milestone_id, previous_completed)
    except (TrackingError, SQLAlchemyError) as exc:
        logger.error("roadmap_alerts_failed", phase_id=str(phase_id), error=str(exc))

    return result
