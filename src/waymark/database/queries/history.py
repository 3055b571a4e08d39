"""History query functions for Waymark.

Insert and read functions for the append-only phase_history and
milestone_history tables. There are no update or delete
functions here.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waymark.database.models.history import ChangeReason, MilestoneHistory, PhaseHistory
from waymark.database.models.phase import PhaseStatus


async def insert_phase_history(
    session: AsyncSession,
    phase_id: UUID,
    change_reason: ChangeReason,
    changed_at: datetime,
    status: PhaseStatus | None = None,
    previous_status: PhaseStatus | None = None,
    progress_percentage: float | None = None,
    previous_progress: float | None = None,
) -> PhaseHistory:
    """Append a phase history row.

    Args:
        session: Active async database session.
        phase_id: Phase the change belongs to.
        change_reason: Why the value changed.
        changed_at: When the value changed.
        status: New status, for status changes.
        previous_status: Old status, for status changes.
        progress_percentage: New progress, for progress changes.
        previous_progress: Old progress, for progress changes.

    Returns:
        The inserted PhaseHistory row.
    """
    entry = PhaseHistory(
        phase_id=phase_id,
        status=status,
        previous_status=previous_status,
        progress_percentage=progress_percentage,
        previous_progress=previous_progress,
        change_reason=change_reason,
        changed_at=changed_at,
    )
    session.add(entry)
    await session.flush()
    return entry


async def insert_milestone_history(
    session: AsyncSession,
    milestone_id: UUID,
    phase_id: UUID,
    is_completed: bool,
    previous_completed: bool,
    change_reason: ChangeReason,
    changed_at: datetime,
    completed_date: datetime | None = None,
) -> MilestoneHistory:
    """Append a milestone history row."""
    entry = MilestoneHistory(
        milestone_id=milestone_id,
        phase_id=phase_id,
        is_completed=is_completed,
        previous_completed=previous_completed,
        completed_date=completed_date,
        change_reason=change_reason,
        changed_at=changed_at,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_phase_history(
    session: AsyncSession,
    phase_id: UUID,
) -> list[PhaseHistory]:
    """Return a phase's history, oldest first."""
    stmt = (
        select(PhaseHistory)
        .where(PhaseHistory.phase_id == phase_id)
        .order_by(PhaseHistory.changed_at.asc(), PhaseHistory.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_milestone_history(
    session: AsyncSession,
    milestone_id: UUID,
) -> list[MilestoneHistory]:
    """Return a milestone's history, oldest first."""
    stmt = (
        select(MilestoneHistory)
        .where(MilestoneHistory.milestone_id == milestone_id)
        .order_by(MilestoneHistory.changed_at.asc(), MilestoneHistory.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_phase_milestone_history(
    session: AsyncSession,
    phase_id: UUID,
) -> list[MilestoneHistory]:
    """Return the history of every milestone a phase has had, oldest first.

    Rows of deleted milestones are included.
    """
    stmt = (
        select(MilestoneHistory)
        .where(MilestoneHistory.phase_id == phase_id)
        .order_by(MilestoneHistory.changed_at.asc(), MilestoneHistory.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
