"""Roadmap alerts raised after recalculation.

The alerter inspects the outcome of a phase recalculation and stores alert
rows for the events a project owner cares about:

- a phase became delayed (one active delay alert per phase)
- a phase or milestone completed
- phase progress crossed one of the configured thresholds

Alerts are stored only; notifying people is left to whatever reads them.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from waymark.database.models.alert import Alert, AlertKind, AlertSeverity
from waymark.database.models.phase import PhaseStatus
from waymark.database.queries.alert import create_alert, find_active_alert
from waymark.database.queries.milestone import get_milestone
from waymark.database.queries.phase import get_phase
from waymark.errors import MilestoneNotFoundError, PhaseNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from waymark.database.models.phase import Phase
    from waymark.roadmap.tracker import PhaseRecalculation

logger = structlog.get_logger(__name__)

DEFAULT_THRESHOLDS: tuple[int, ...] = (25, 50, 75, 100)


def crossed_threshold(
    previous: float | None,
    current: float,
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
) -> float | None:
    """Return the first threshold crossed on the way from previous to current.

    A threshold t is crossed when ``previous < t <= current``. A previous
    value of None counts as 0. Progress going down never crosses anything.
    """
    start = previous or 0.0
    for threshold in sorted(thresholds):
        if start < threshold <= current:
            return threshold
    return None


class RoadmapAlerter:
    """Stores alerts for delays, completions and progress milestones.

    Runs inside the caller's transaction; storage errors propagate.
    """

    def __init__(self, thresholds: Sequence[float] = DEFAULT_THRESHOLDS):
        self.thresholds = tuple(sorted(thresholds))
        self.logger = logger.bind(component="RoadmapAlerter")

    async def check_phase_alerts(
        self,
        session: AsyncSession,
        recalculation: PhaseRecalculation,
    ) -> list[Alert]:
        """Raise alerts for a phase after it was recalculated.

        Args:
            session: Active async database session.
            recalculation: Outcome of the recalculation.

        Returns:
            The alerts created (possibly empty).

        Raises:
            PhaseNotFoundError: If the phase no longer exists.
        """
        phase = await get_phase(session, recalculation.phase_id)
        if phase is None:
            raise PhaseNotFoundError(recalculation.phase_id)

        alerts: list[Alert] = []

        if recalculation.status == PhaseStatus.delayed:
            delay = await self._delay_alert(session, phase)
            if delay is not None:
                alerts.append(delay)

        if (
            recalculation.status == PhaseStatus.completed
            and recalculation.previous_status != PhaseStatus.completed
        ):
            alerts.append(
                await create_alert(
                    session,
                    project_id=phase.project_id,
                    phase_id=phase.id,
                    kind=AlertKind.completion,
                    title=f"Phase completed: {phase.name}",
                    message=f'Phase "{phase.name}" has been completed.',
                    severity=AlertSeverity.info,
                    details={"phase_id": str(phase.id)},
                )
            )

        threshold = crossed_threshold(
            recalculation.previous_progress, recalculation.progress, self.thresholds
        )
        if threshold is not None:
            alerts.append(
                await create_alert(
                    session,
                    project_id=phase.project_id,
                    phase_id=phase.id,
                    kind=AlertKind.progress_threshold,
                    title=f"{phase.name} reached {threshold:g}%",
                    message=(
                        f'Phase "{phase.name}" progress moved from '
                        f"{recalculation.previous_progress or 0:g}% to "
                        f"{recalculation.progress:g}%."
                    ),
                    severity=AlertSeverity.info,
                    details={
                        "phase_id": str(phase.id),
                        "threshold": threshold,
                        "previous_progress": recalculation.previous_progress,
                        "progress": recalculation.progress,
                    },
                )
            )

        if alerts:
            self.logger.info(
                "phase_alerts_raised",
                phase_id=str(phase.id),
                kinds=[a.kind.value for a in alerts],
            )
        return alerts

    async def _delay_alert(self, session: AsyncSession, phase: Phase) -> Alert | None:
        existing = await find_active_alert(session, phase.id, AlertKind.delay)
        if existing is not None:
            return None

        target = phase.target_end_date.date().isoformat() if phase.target_end_date else None
        return await create_alert(
            session,
            project_id=phase.project_id,
            phase_id=phase.id,
            kind=AlertKind.delay,
            title=f"Phase delayed: {phase.name}",
            message=phase.delay_reason or f'Phase "{phase.name}" is behind schedule.',
            severity=AlertSeverity.warning,
            details={"phase_id": str(phase.id), "target_end_date": target},
        )

    async def check_milestone_alerts(
        self,
        session: AsyncSession,
        milestone_id: UUID,
        previous_completed: bool,
    ) -> list[Alert]:
        """Raise a completion alert when a milestone was just completed.

        Raises:
            MilestoneNotFoundError: If the milestone does not exist.
        """
        milestone = await get_milestone(session, milestone_id)
        if milestone is None:
            raise MilestoneNotFoundError(milestone_id)

        if not milestone.is_completed or previous_completed:
            return []

        phase = await get_phase(session, milestone.phase_id)
        if phase is None:
            raise PhaseNotFoundError(milestone.phase_id)

        alert = await create_alert(
            session,
            project_id=phase.project_id,
            phase_id=phase.id,
            kind=AlertKind.completion,
            title=f"Milestone completed: {milestone.name}",
            message=f'Milestone "{milestone.name}" in phase "{phase.name}" was completed.',
            severity=AlertSeverity.info,
            details={"milestone_id": str(milestone.id), "phase_id": str(phase.id)},
        )
        self.logger.info("milestone_alert_raised", milestone_id=str(milestone.id))
        return [alert]
