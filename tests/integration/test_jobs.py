"""Integration tests for the scheduled roadmap jobs."""

from __future__ import annotations

from datetime import timedelta
from uuid import UUID

import pytest

from waymark.database.models.phase import PhaseStatus
from waymark.database.queries.phase import get_phase
from waymark.errors import PersistenceError
from waymark.roadmap.jobs import run_daily_roadmap_sync, sync_all_projects, sync_project_phases

pytestmark = pytest.mark.integration


class TestDailyRoadmapSync:
    async def test_detects_delays_and_skips_completed(
        self, tracker, alerter, session_factory, make_project, make_phase, now
    ) -> None:
        project_id = await make_project()
        overdue = await make_phase(
            project_id,
            "Overdue",
            milestones=[True, False],
            target_end_date=now - timedelta(days=2),
        )
        await make_phase(
            project_id, "On track", milestones=[False], target_end_date=now + timedelta(days=10)
        )
        await make_phase(project_id, "Done", milestones=[True], status=PhaseStatus.completed)

        report = await run_daily_roadmap_sync(tracker, alerter, session_factory)

        assert report.phases_checked == 2
        assert report.delays_detected == 1
        assert report.statuses_updated == 1
        assert report.alerts_raised == 2
        assert report.errors == []

        async with session_factory() as session:
            phase = await get_phase(session, overdue)
        assert phase.status == PhaseStatus.delayed

    async def test_second_run_changes_nothing(
        self, tracker, alerter, session_factory, make_project, make_phase, now
    ) -> None:
        project_id = await make_project()
        await make_phase(
            project_id, milestones=[False], target_end_date=now - timedelta(days=2)
        )
        await run_daily_roadmap_sync(tracker, alerter, session_factory)

        report = await run_daily_roadmap_sync(tracker, alerter, session_factory)

        assert report.phases_checked == 1
        assert report.statuses_updated == 0
        assert report.alerts_raised == 0

    async def test_phase_failure_is_counted_not_fatal(
        self, tracker, alerter, session_factory, make_project, make_phase, monkeypatch
    ) -> None:
        project_id = await make_project()
        bad = await make_phase(project_id, "Bad", milestones=[True, False], phase_order=1)
        await make_phase(project_id, "Good", milestones=[True, False], phase_order=2)
        real_recalculate = tracker.recalculate_phase

        async def flaky(phase_id: UUID):
            if phase_id == bad:
                raise PersistenceError("phase recalculation", phase_id)
            return await real_recalculate(phase_id)

        monkeypatch.setattr(tracker, "recalculate_phase", flaky)

        report = await run_daily_roadmap_sync(tracker, alerter, session_factory)

        assert report.phases_checked == 2
        assert report.statuses_updated == 1
        assert len(report.errors) == 1
        assert str(bad) in report.errors[0]

    async def test_report_as_dict(self, tracker, alerter, session_factory) -> None:
        report = await run_daily_roadmap_sync(tracker, alerter, session_factory)

        assert report.as_dict() == {
            "phases_checked": 0,
            "delays_detected": 0,
            "statuses_updated": 0,
            "alerts_raised": 0,
            "errors": [],
        }


class TestProjectSyncJobs:
    async def test_sync_project_phases(self, tracker, make_project, make_phase) -> None:
        project_id = await make_project()
        await make_phase(project_id, milestones=[True])

        outcome = await sync_project_phases(tracker, project_id)

        assert [r.status for r in outcome.results] == [PhaseStatus.completed]

    async def test_sync_all_projects(
        self, tracker, session_factory, make_project, make_phase
    ) -> None:
        first = await make_project("First")
        second = await make_project("Second")
        await make_phase(first, milestones=[True, False])
        await make_phase(second, milestones=[False])
        await make_phase(second, milestones=[True])

        report = await sync_all_projects(tracker, session_factory)

        assert report.projects_synced == 2
        assert report.phases_recalculated == 3
        assert report.errors == []
