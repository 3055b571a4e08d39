"""Scheduled roadmap maintenance.

The daily sync walks every unfinished phase through the tracker so that
phases whose target end date has passed become delayed even when nobody
touched their milestones. Each phase and project is processed on its own;
one failure is logged and counted, never fatal for the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from waymark.database.models.phase import PhaseStatus
from waymark.database.queries.phase import list_phases
from waymark.database.queries.project import list_project_ids
from waymark.errors import TrackingError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import ProjectRecalculation, RoadmapTracker

logger = structlog.get_logger(__name__)


@dataclass
class DailySyncReport:
    """Counters for one daily sync run."""

    phases_checked: int = 0
    delays_detected: int = 0
    statuses_updated: int = 0
    alerts_raised: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "phases_checked": self.phases_checked,
            "delays_detected": self.delays_detected,
            "statuses_updated": self.statuses_updated,
            "alerts_raised": self.alerts_raised,
            "errors": list(self.errors),
        }


@dataclass
class ProjectsSyncReport:
    """Outcome of recalculating every project."""

    projects_synced: int = 0
    phases_recalculated: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "projects_synced": self.projects_synced,
            "phases_recalculated": self.phases_recalculated,
            "errors": list(self.errors),
        }


async def run_daily_roadmap_sync(
    tracker: RoadmapTracker,
    alerter: RoadmapAlerter,
    session_factory: async_sessionmaker[AsyncSession],
) -> DailySyncReport:
    """Recalculate every non-completed phase and raise alerts.

    Args:
        tracker: Tracker used for each recalculation.
        alerter: Alerter run after each recalculation.
        session_factory: Factory for the listing and alert sessions.

    Returns:
        Counters and per-phase error messages for the run.
    """
    report = DailySyncReport()
    logger.info("daily_roadmap_sync_started")

    async with session_factory() as session:
        phases = await list_phases(session, exclude_status=PhaseStatus.completed)
        phase_ids = [phase.id for phase in phases]

    for phase_id in phase_ids:
        report.phases_checked += 1
        try:
            result = await tracker.recalculate_phase(phase_id)
            if result.status_changed:
                report.statuses_updated += 1
                if result.status == PhaseStatus.delayed:
                    report.delays_detected += 1

            async with session_factory() as session:
                async with session.begin():
                    alerts = await alerter.check_phase_alerts(session, result)
            report.alerts_raised += len(alerts)
        except (TrackingError, SQLAlchemyError) as exc:
            logger.error("daily_sync_phase_failed", phase_id=str(phase_id), error=str(exc))
            report.errors.append(f"Phase {phase_id}: {exc}")

    logger.info("daily_roadmap_sync_completed", **report.as_dict())
    return report


async def sync_project_phases(
    tracker: RoadmapTracker,
    project_id: UUID,
) -> ProjectRecalculation:
    """Recalculate all phases of one project."""
    outcome = await tracker.recalculate_project_phases(project_id)
    logger.info(
        "project_phases_synced",
        project_id=str(project_id),
        recalculated=len(outcome.results),
        failed=len(outcome.failures),
    )
    return outcome


async def sync_all_projects(
    tracker: RoadmapTracker,
    session_factory: async_sessionmaker[AsyncSession],
) -> ProjectsSyncReport:
    """Recalculate every phase of every project.

    Args:
        tracker: Tracker used for the recalculations.
        session_factory: Factory for the project listing session.

    Returns:
        Totals plus one message per failed project or phase.
    """
    report = ProjectsSyncReport()

    async with session_factory() as session:
        project_ids = await list_project_ids(session)

    for project_id in project_ids:
        try:
            outcome = await sync_project_phases(tracker, project_id)
        except (TrackingError, SQLAlchemyError) as exc:
            logger.error("project_sync_failed", project_id=str(project_id), error=str(exc))
            report.errors.append(f"Project {project_id}: {exc}")
            continue

        report.projects_synced += 1
        report.phases_recalculated += len(outcome.results)
        report.errors.extend(
            f"Phase {phase_id}: {message}" for phase_id, message in outcome.failures.items()
        )

    logger.info("all_projects_synced", **report.as_dict())
    return report
