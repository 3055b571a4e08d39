"""Phase recalculation orchestrator.

RoadmapTracker is the entry point the CRUD layer calls after any milestone
create, completion toggle or delete, and after creating a phase that
already has milestones. One recalculation:

1. loads the phase and its milestones (row locked where supported)
2. computes progress from the milestones
3. writes progress, the auto-calculated flag and timestamp
4. records a history row if progress moved by more than the tolerance
5. resolves the status against the status read in step 1
6. writes the status (plus end_date / delay_reason) and records history
   if it changed
7. synchronises the owning project's status
8. returns the new progress and status

Steps 1-6 share one transaction; step 7 runs in a second one because it is
idempotent and safe to re-run. Errors are never swallowed or retried:
storage failures surface as PersistenceError, missing rows as NotFoundError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from waymark.database.models.phase import PhaseStatus
from waymark.database.queries.phase import (
    apply_calculated_progress,
    apply_phase_status,
    get_phase,
    list_phase_ids,
)
from waymark.database.queries.project import get_project
from waymark.errors import (
    PersistenceError,
    PhaseNotFoundError,
    ProjectNotFoundError,
    TrackingError,
)
from waymark.logging import bind_phase_context, clear_phase_context
from waymark.roadmap.clock import Clock, utc_now
from waymark.roadmap.history import HistoryRecorder
from waymark.roadmap.progress import calculate_progress
from waymark.roadmap.status import PhaseSnapshot, match_rule
from waymark.roadmap.sync import ProjectStatusSynchronizer, ProjectSync

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.config import TrackingConfig

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PhaseRecalculation:
    """Result of recalculating one phase.

    Attributes:
        phase_id: Phase that was recalculated.
        project_id: Owning project.
        progress: New progress percentage.
        status: New status.
        previous_progress: Progress before recalculation (None = never set).
        previous_status: Status before recalculation.
        project_sync: Outcome of the project status synchronisation.
    """

    phase_id: UUID
    project_id: UUID
    progress: float
    status: PhaseStatus
    previous_progress: float | None
    previous_status: PhaseStatus
    project_sync: ProjectSync | None = None

    @property
    def status_changed(self) -> bool:
        return self.status != self.previous_status


@dataclass
class ProjectRecalculation:
    """Result of recalculating every phase of a project.

    Attributes:
        project_id: Project whose phases were recalculated.
        results: Successful phase recalculations, in roadmap order.
        failures: Error message per phase that failed.
    """

    project_id: UUID
    results: list[PhaseRecalculation] = field(default_factory=list)
    failures: dict[UUID, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class RoadmapTracker:
    """Derives phase progress and status and rolls them up to the project.

    Each recalculation opens its own session from the factory, so a failed
    recalculation never rolls back the caller's triggering mutation.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = utc_now,
        recorder: HistoryRecorder | None = None,
        synchronizer: ProjectStatusSynchronizer | None = None,
        respect_blocked: bool = False,
    ):
        """Initialize the tracker.

        Args:
            session_factory: Factory for the sessions recalculations run in.
            clock: Source of "now".
            recorder: History recorder (default tolerance 0.01).
            synchronizer: Project status synchronizer.
            respect_blocked: Keep manually blocked phases blocked.
        """
        self.session_factory = session_factory
        self.clock = clock
        self.recorder = recorder or HistoryRecorder()
        self.synchronizer = synchronizer or ProjectStatusSynchronizer()
        self.respect_blocked = respect_blocked
        self.logger = logger.bind(component="RoadmapTracker")

    @classmethod
    def from_config(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        config: TrackingConfig,
        clock: Clock = utc_now,
    ) -> RoadmapTracker:
        """Build a tracker from the tracking section of the configuration."""
        return cls(
            session_factory,
            clock=clock,
            recorder=HistoryRecorder(progress_tolerance=config.progress_tolerance),
            respect_blocked=config.respect_blocked,
        )

    async def recalculate_phase(self, phase_id: UUID) -> PhaseRecalculation:
        """Recalculate one phase's progress and status.

        Args:
            phase_id: Phase to recalculate.

        Returns:
            The new progress and status, with the previous values.

        Raises:
            PhaseNotFoundError: If the phase does not exist.
            ProjectNotFoundError: If the owning project vanished mid-way.
            PersistenceError: If any storage read or write fails.
        """
        bind_phase_context(phase_id=str(phase_id))
        try:
            async with self.session_factory() as session:
                try:
                    async with session.begin():
                        result = await self._recalculate_in_transaction(session, phase_id)
                except SQLAlchemyError as exc:
                    raise PersistenceError("phase recalculation", phase_id) from exc

                try:
                    async with session.begin():
                        project_sync = await self.synchronizer.sync(
                            session, result.project_id, self.clock()
                        )
                except SQLAlchemyError as exc:
                    raise PersistenceError("project status sync", result.project_id) from exc
        finally:
            clear_phase_context()

        return PhaseRecalculation(
            phase_id=result.phase_id,
            project_id=result.project_id,
            progress=result.progress,
            status=result.status,
            previous_progress=result.previous_progress,
            previous_status=result.previous_status,
            project_sync=project_sync,
        )

    async def _recalculate_in_transaction(
        self,
        session: AsyncSession,
        phase_id: UUID,
    ) -> PhaseRecalculation:
        phase = await get_phase(session, phase_id, for_update=True)
        if phase is None:
            raise PhaseNotFoundError(phase_id)

        now = self.clock()
        previous_progress = phase.progress_percentage
        previous_status = phase.status

        progress = calculate_progress(phase.milestones)
        await apply_calculated_progress(session, phase, progress, now)
        await self.recorder.record_phase_progress(
            session, phase.id, previous_progress, progress, now
        )

        if self.respect_blocked and previous_status == PhaseStatus.blocked:
            new_status = previous_status
            rule_name = "respect_blocked"
        else:
            rule = match_rule(PhaseSnapshot.from_phase(phase, progress), now)
            new_status = rule.result
            rule_name = rule.name

        if new_status != previous_status:
            await apply_phase_status(session, phase, new_status, now)
            await self.recorder.record_phase_status(
                session, phase.id, previous_status, new_status, now
            )

        self.logger.info(
            "phase_recalculated",
            phase_id=str(phase.id),
            project_id=str(phase.project_id),
            milestone_count=len(phase.milestones),
            previous_progress=previous_progress,
            progress=progress,
            previous_status=previous_status.value,
            status=new_status.value,
            rule=rule_name,
        )

        return PhaseRecalculation(
            phase_id=phase.id,
            project_id=phase.project_id,
            progress=progress,
            status=new_status,
            previous_progress=previous_progress,
            previous_status=previous_status,
        )

    async def recalculate_project_phases(self, project_id: UUID) -> ProjectRecalculation:
        """Recalculate every phase of a project independently.

        A failing phase is logged and collected in ``failures``; it does
        not stop its siblings.

        Args:
            project_id: Project whose phases to recalculate.

        Returns:
            Per-phase results and failures.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            PersistenceError: If the phase list cannot be read.
        """
        try:
            async with self.session_factory() as session:
                project = await get_project(session, project_id)
                if project is None:
                    raise ProjectNotFoundError(project_id)
                phase_ids = await list_phase_ids(session, project_id)
        except SQLAlchemyError as exc:
            raise PersistenceError("listing project phases", project_id) from exc

        outcome = ProjectRecalculation(project_id=project_id)
        for phase_id in phase_ids:
            try:
                outcome.results.append(await self.recalculate_phase(phase_id))
            except TrackingError as exc:
                self.logger.warning(
                    "phase_recalculation_failed",
                    project_id=str(project_id),
                    phase_id=str(phase_id),
                    error=str(exc),
                )
                outcome.failures[phase_id] = str(exc)

        self.logger.info(
            "project_phases_recalculated",
            project_id=str(project_id),
            phase_count=len(phase_ids),
            failed=len(outcome.failures),
        )
        return outcome

    async def sync_project(self, project_id: UUID) -> ProjectSync:
        """Run only the project status synchronisation for a project."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    return await self.synchronizer.sync(session, project_id, self.clock())
        except SQLAlchemyError as exc:
            raise PersistenceError("project status sync", project_id) from exc
