"""Phase query functions for Waymark.

Provides async functions for creating, reading and updating roadmap Phase
records, including the progress and status writes the roadmap tracker
performs. Functions flush but never commit: the caller owns the transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waymark.database.models.phase import Phase, PhaseStatus
from waymark.errors import PhaseNotFoundError

logger = structlog.get_logger(__name__)


async def create_phase(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    phase_order: int = 0,
    description: str | None = None,
    start_date: datetime | None = None,
    target_end_date: datetime | None = None,
    status: PhaseStatus = PhaseStatus.not_started,
    progress_percentage: float | None = None,
) -> Phase:
    """Create a new phase in a project.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        name: Phase name.
        phase_order: Position within the project's roadmap.
        description: Optional description.
        start_date: Optional planned start.
        target_end_date: Optional planned end.
        status: Initial status.
        progress_percentage: Optional manually entered progress.

    Returns:
        The newly created Phase instance.
    """
    phase = Phase(
        project_id=project_id,
        name=name,
        phase_order=phase_order,
        description=description,
        start_date=start_date,
        target_end_date=target_end_date,
        status=status,
        progress_percentage=progress_percentage,
        auto_calculated_progress=False,
        milestones=[],
    )
    session.add(phase)
    await session.flush()

    logger.info(
        "phase_created",
        phase_id=str(phase.id),
        project_id=str(project_id),
        name=name,
        status=phase.status.value,
    )

    return phase


async def get_phase(
    session: AsyncSession,
    phase_id: UUID,
    for_update: bool = False,
) -> Phase | None:
    """Retrieve a phase (with its milestones) by ID.

    Args:
        session: Active async database session.
        phase_id: UUID of the phase to retrieve.
        for_update: Lock the phase row until the transaction ends and
            refresh any copy already in the identity map.

    Returns:
        The Phase instance if found, None otherwise.
    """
    stmt = select(Phase).where(Phase.id == phase_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_phases(
    session: AsyncSession,
    project_id: UUID | None = None,
    exclude_status: PhaseStatus | None = None,
) -> list[Phase]:
    """List phases in roadmap order.

    Args:
        session: Active async database session.
        project_id: Optional project to restrict to.
        exclude_status: Optional status to leave out (e.g. completed).

    Returns:
        Matching phases ordered by project, then phase_order.
    """
    stmt = select(Phase)

    if project_id is not None:
        stmt = stmt.where(Phase.project_id == project_id)

    if exclude_status is not None:
        stmt = stmt.where(Phase.status != exclude_status)

    stmt = stmt.order_by(Phase.project_id, Phase.phase_order.asc(), Phase.created_at.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_phase_ids(session: AsyncSession, project_id: UUID) -> list[UUID]:
    """Return the IDs of a project's phases in roadmap order."""
    stmt = (
        select(Phase.id)
        .where(Phase.project_id == project_id)
        .order_by(Phase.phase_order.asc(), Phase.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_phase(
    session: AsyncSession,
    phase_id: UUID,
    **updates: Any,
) -> Phase:
    """Update a phase's fields.

    Args:
        session: Active async database session.
        phase_id: UUID of the phase to update.
        **updates: Field names and values to update.

    Returns:
        The updated Phase instance.

    Raises:
        PhaseNotFoundError: If the phase does not exist.
    """
    phase = await get_phase(session, phase_id)
    if phase is None:
        raise PhaseNotFoundError(phase_id)

    for field, value in updates.items():
        setattr(phase, field, value)
    await session.flush()

    logger.info(
        "phase_updated",
        phase_id=str(phase_id),
        fields_updated=list(updates.keys()),
    )

    return phase


async def apply_calculated_progress(
    session: AsyncSession,
    phase: Phase,
    progress: float,
    calculated_at: datetime,
) -> Phase:
    """Write a tracker-derived progress value onto a phase.

    The auto-calculation flag and timestamp are refreshed on every call,
    even when the numeric value is unchanged.

    Args:
        session: Active async database session.
        phase: Phase loaded in this session.
        progress: New progress percentage.
        calculated_at: Calculation time.

    Returns:
        The updated Phase instance.
    """
    phase.progress_percentage = progress
    phase.auto_calculated_progress = True
    phase.last_auto_calculated_at = calculated_at
    await session.flush()
    return phase


async def apply_phase_status(
    session: AsyncSession,
    phase: Phase,
    new_status: PhaseStatus,
    changed_at: datetime,
) -> Phase:
    """Set a phase's status and the fields that go with it.

    Entering completed stamps end_date once (an existing end_date is kept).
    Entering delayed records a delay_reason naming the passed target date.

    Args:
        session: Active async database session.
        phase: Phase loaded in this session.
        new_status: Status to set.
        changed_at: Time of the change.

    Returns:
        The updated Phase instance.
    """
    old_status = phase.status
    phase.status = new_status

    if new_status == PhaseStatus.completed and phase.end_date is None:
        phase.end_date = changed_at

    if new_status == PhaseStatus.delayed:
        if phase.target_end_date is not None:
            phase.delay_reason = (
                f"Target end date ({phase.target_end_date.date().isoformat()}) has passed"
            )
        else:
            phase.delay_reason = "Phase is behind schedule"

    await session.flush()

    logger.info(
        "phase_status_updated",
        phase_id=str(phase.id),
        old_status=old_status.value,
        new_status=new_status.value,
    )

    return phase
