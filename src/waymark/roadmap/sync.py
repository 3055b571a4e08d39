"""Project status synchronisation from phase state.

Rolls the statuses of a project's phases up into the project:

- every phase completed (and project not completed yet) -> completed,
  stamping actual_completion_date
- any phase in progress while the project is still planning -> pilot

Nothing else is touched. The synchronizer never moves a project backward
and ignores scaling, production and paused except as a source status for
completion.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from waymark.database.models.phase import PhaseStatus
from waymark.database.models.project import ProjectStatus
from waymark.database.queries.project import get_project
from waymark.errors import ProjectNotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


def decide_project_status(
    current: ProjectStatus,
    phase_statuses: Sequence[PhaseStatus],
) -> ProjectStatus | None:
    """Decide whether a project's status should change.

    Args:
        current: The project's current status.
        phase_statuses: Status of every phase of the project.

    Returns:
        The new status, or None when the project should be left alone.
    """
    if not phase_statuses:
        return None

    if all(s == PhaseStatus.completed for s in phase_statuses):
        if current != ProjectStatus.completed:
            return ProjectStatus.completed
        return None

    if current == ProjectStatus.planning and any(
        s == PhaseStatus.in_progress for s in phase_statuses
    ):
        return ProjectStatus.pilot

    return None


@dataclass(frozen=True)
class ProjectSync:
    """Outcome of one project synchronisation.

    Attributes:
        project_id: Project that was synchronised.
        previous_status: Status before synchronisation.
        status: Status after synchronisation.
    """

    project_id: UUID
    previous_status: ProjectStatus
    status: ProjectStatus

    @property
    def changed(self) -> bool:
        return self.previous_status != self.status


class ProjectStatusSynchronizer:
    """Applies decide_project_status to a stored project."""

    def __init__(self):
        self.logger = logger.bind(component="ProjectStatusSynchronizer")

    async def sync(
        self,
        session: AsyncSession,
        project_id: UUID,
        now: datetime,
    ) -> ProjectSync:
        """Synchronise one project's status from its phases.

        Args:
            session: Active async database session (caller owns the transaction).
            project_id: Project to synchronise.
            now: Time used for actual_completion_date.

        Returns:
            The synchronisation outcome.

        Raises:
            ProjectNotFoundError: If the project does not exist.
        """
        project = await get_project(session, project_id, for_update=True)
        if project is None:
            raise ProjectNotFoundError(project_id)

        previous_status = project.status
        new_status = decide_project_status(
            previous_status,
            [phase.status for phase in project.phases],
        )

        if new_status is None:
            self.logger.debug(
                "project_status_unchanged",
                project_id=str(project_id),
                status=previous_status.value,
                phase_count=len(project.phases),
            )
            return ProjectSync(project_id, previous_status, previous_status)

        project.status = new_status
        if new_status == ProjectStatus.completed and project.actual_completion_date is None:
            project.actual_completion_date = now
        await session.flush()

        self.logger.info(
            "project_status_synced",
            project_id=str(project_id),
            from_status=previous_status.value,
            to_status=new_status.value,
        )
        return ProjectSync(project_id, previous_status, new_status)
