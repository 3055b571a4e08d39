"""Phase progress calculation.

Progress is the share of a phase's milestones that are completed,
expressed as a percentage rounded to two decimals. A phase without
milestones has progress 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import UUID

from waymark.database.queries.phase import get_phase
from waymark.errors import PhaseNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from waymark.database.models.milestone import Milestone


def calculate_progress(milestones: Sequence[Milestone]) -> float:
    """Compute percent-complete from a set of milestones.

    Args:
        milestones: Every milestone of the phase (anything with an
            ``is_completed`` attribute).

    Returns:
        ``completed / total * 100`` rounded to 2 decimals, or 0.0 when
        there are no milestones.
    """
    total = len(milestones)
    if total == 0:
        return 0.0

    completed = sum(1 for m in milestones if m.is_completed)
    return round(completed / total * 100, 2)


async def calculate_phase_progress(session: AsyncSession, phase_id: UUID) -> float:
    """Load a phase with its milestones and compute its progress.

    Args:
        session: Active async database session.
        phase_id: Phase to calculate.

    Returns:
        The phase's progress percentage.

    Raises:
        PhaseNotFoundError: If the phase does not exist.
    """
    phase = await get_phase(session, phase_id)
    if phase is None:
        raise PhaseNotFoundError(phase_id)
    return calculate_progress(phase.milestones)
