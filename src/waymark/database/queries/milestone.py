"""Milestone query functions for Waymark.

Provides async functions for creating, reading, updating and deleting
Milestone records. Completion bookkeeping lives here: completed_date is set
when a milestone is completed and cleared when it is reopened.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waymark.database.models.milestone import Milestone
from waymark.errors import MilestoneNotFoundError

logger = structlog.get_logger(__name__)


async def create_milestone(
    session: AsyncSession,
    phase_id: UUID,
    name: str,
    created_at: datetime,
    description: str | None = None,
    deliverables: str | None = None,
    target_date: datetime | None = None,
    is_completed: bool = False,
) -> Milestone:
    """Create a milestone in a phase.

    Args:
        session: Active async database session.
        phase_id: UUID of the owning phase.
        name: Milestone name.
        created_at: Current time, used as completed_date when the milestone
            is created already completed.
        description: Optional description.
        deliverables: Optional deliverables text.
        target_date: Optional planned completion.
        is_completed: Whether the milestone starts completed.

    Returns:
        The newly created Milestone instance.
    """
    milestone = Milestone(
        phase_id=phase_id,
        name=name,
        description=description,
        deliverables=deliverables,
        target_date=target_date,
        is_completed=is_completed,
        completed_date=created_at if is_completed else None,
    )
    session.add(milestone)
    await session.flush()

    logger.info(
        "milestone_created",
        milestone_id=str(milestone.id),
        phase_id=str(phase_id),
        is_completed=is_completed,
    )

    return milestone


async def get_milestone(
    session: AsyncSession,
    milestone_id: UUID,
) -> Milestone | None:
    """Retrieve a milestone by ID."""
    stmt = select(Milestone).where(Milestone.id == milestone_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_milestones(
    session: AsyncSession,
    phase_id: UUID,
) -> list[Milestone]:
    """List a phase's milestones by target date (undated last)."""
    stmt = (
        select(Milestone)
        .where(Milestone.phase_id == phase_id)
        .order_by(Milestone.target_date.is_(None), Milestone.target_date, Milestone.created_at)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_milestone(
    session: AsyncSession,
    milestone_id: UUID,
    changed_at: datetime,
    **updates: Any,
) -> Milestone:
    """Update a milestone's fields.

    When ``is_completed`` is among the updates, completed_date follows it:
    set to changed_at on completion, cleared on reopening.

    Args:
        session: Active async database session.
        milestone_id: UUID of the milestone to update.
        changed_at: Time of the change.
        **updates: Field names and values to update.

    Returns:
        The updated Milestone instance.

    Raises:
        MilestoneNotFoundError: If the milestone does not exist.
    """
    milestone = await get_milestone(session, milestone_id)
    if milestone is None:
        raise MilestoneNotFoundError(milestone_id)

    if "is_completed" in updates:
        updates["completed_date"] = changed_at if updates["is_completed"] else None

    for field, value in updates.items():
        setattr(milestone, field, value)
    await session.flush()

    logger.info(
        "milestone_updated",
        milestone_id=str(milestone_id),
        fields_updated=list(updates.keys()),
    )

    return milestone


async def delete_milestone(
    session: AsyncSession,
    milestone_id: UUID,
) -> Milestone:
    """Delete a milestone.

    Args:
        session: Active async database session.
        milestone_id: UUID of the milestone to delete.

    Returns:
        The deleted Milestone (detached), so callers know its phase.

    Raises:
        MilestoneNotFoundError: If the milestone does not exist.
    """
    milestone = await get_milestone(session, milestone_id)
    if milestone is None:
        logger.warning("milestone_not_found", milestone_id=str(milestone_id))
        raise MilestoneNotFoundError(milestone_id)

    await session.delete(milestone)
    await session.flush()

    logger.info(
        "milestone_deleted",
        milestone_id=str(milestone_id),
        phase_id=str(milestone.phase_id),
    )

    return milestone
