"""History recording for tracked phase and milestone changes.

The recorder appends an audit row only when a value actually changed;
no-op writes are suppressed. Storage errors are not caught here: they
propagate to the caller so the surrounding transaction is rolled back.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from waymark.database.models.history import ChangeReason, MilestoneHistory, PhaseHistory
from waymark.database.models.phase import PhaseStatus
from waymark.database.queries.history import insert_milestone_history, insert_phase_history

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from waymark.database.models.milestone import Milestone

logger = structlog.get_logger(__name__)


class HistoryRecorder:
    """Appends PhaseHistory and MilestoneHistory rows for real changes.

    Attributes:
        progress_tolerance: Progress deltas at or below this many percentage
            points are not recorded.
    """

    def __init__(self, progress_tolerance: float = 0.01):
        self.progress_tolerance = progress_tolerance
        self.logger = logger.bind(component="HistoryRecorder")

    def progress_changed(self, previous: float | None, new: float) -> bool:
        """Return True if a progress change is large enough to record.

        A previous value of None (never calculated) counts as 0.
        """
        # Rounded to the stored precision so a 0.01 step is not inflated by float error
        return round(abs(new - (previous or 0.0)), 2) > self.progress_tolerance

    async def record_phase_progress(
        self,
        session: AsyncSession,
        phase_id: UUID,
        previous: float | None,
        new: float,
        changed_at: datetime,
        reason: ChangeReason = ChangeReason.auto_calculated,
    ) -> PhaseHistory | None:
        """Record a phase progress change if it exceeds the tolerance.

        Args:
            session: Active async database session.
            phase_id: Phase whose progress changed.
            previous: Progress before the change (None = never calculated).
            new: Progress after the change.
            changed_at: Time of the change.
            reason: Why the progress changed.

        Returns:
            The inserted row, or None when nothing was recorded.
        """
        if not self.progress_changed(previous, new):
            return None

        previous_value = previous or 0.0
        entry = await insert_phase_history(
            session,
            phase_id=phase_id,
            change_reason=reason,
            changed_at=changed_at,
            progress_percentage=new,
            previous_progress=previous_value,
        )

        self.logger.info(
            "phase_progress_recorded",
            phase_id=str(phase_id),
            previous_progress=previous_value,
            progress=new,
            change_reason=reason.value,
        )
        return entry

    async def record_phase_status(
        self,
        session: AsyncSession,
        phase_id: UUID,
        previous: PhaseStatus,
        new: PhaseStatus,
        changed_at: datetime,
        reason: ChangeReason = ChangeReason.auto_calculated,
    ) -> PhaseHistory | None:
        """Record a phase status change if the status differs.

        Returns:
            The inserted row, or None when the status is unchanged.
        """
        if previous == new:
            return None

        entry = await insert_phase_history(
            session,
            phase_id=phase_id,
            change_reason=reason,
            changed_at=changed_at,
            status=new,
            previous_status=previous,
        )

        self.logger.info(
            "phase_status_recorded",
            phase_id=str(phase_id),
            previous_status=previous.value,
            status=new.value,
            change_reason=reason.value,
        )
        return entry

    async def record_milestone_completion(
        self,
        session: AsyncSession,
        milestone: Milestone,
        previous_completed: bool,
        changed_at: datetime,
        reason: ChangeReason = ChangeReason.manual,
    ) -> MilestoneHistory | None:
        """Record a milestone completion toggle if the flag changed.

        Args:
            session: Active async database session.
            milestone: Milestone after the update.
            previous_completed: Completion flag before the update.
            changed_at: Time of the change.
            reason: Why the flag changed.

        Returns:
            The inserted row, or None when the flag is unchanged.
        """
        if milestone.is_completed == previous_completed:
            return None

        entry = await insert_milestone_history(
            session,
            milestone_id=milestone.id,
            phase_id=milestone.phase_id,
            is_completed=milestone.is_completed,
            previous_completed=previous_completed,
            completed_date=milestone.completed_date,
            change_reason=reason,
            changed_at=changed_at,
        )

        self.logger.info(
            "milestone_completion_recorded",
            milestone_id=str(milestone.id),
            previous_completed=previous_completed,
            is_completed=milestone.is_completed,
            change_reason=reason.value,
        )
        return entry
