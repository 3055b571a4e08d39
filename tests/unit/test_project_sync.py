"""Unit tests for the project status rollup decision."""

from __future__ import annotations

from uuid import uuid4

import pytest

from waymark.database.models.phase import PhaseStatus
from waymark.database.models.project import ProjectStatus
from waymark.roadmap.sync import ProjectSync, decide_project_status

C = PhaseStatus.completed
IP = PhaseStatus.in_progress
NS = PhaseStatus.not_started
D = PhaseStatus.delayed


def test_no_phases_is_noop() -> None:
    assert decide_project_status(ProjectStatus.planning, []) is None


@pytest.mark.parametrize(
    "current",
    [
        ProjectStatus.planning,
        ProjectStatus.pilot,
        ProjectStatus.scaling,
        ProjectStatus.production,
        ProjectStatus.paused,
    ],
)
def test_all_completed_forces_completed(current: ProjectStatus) -> None:
    assert decide_project_status(current, [C, C, C]) == ProjectStatus.completed


def test_already_completed_is_noop() -> None:
    assert decide_project_status(ProjectStatus.completed, [C, C]) is None


def test_planning_with_phase_in_progress_moves_to_pilot() -> None:
    assert decide_project_status(ProjectStatus.planning, [C, IP, NS]) == ProjectStatus.pilot


@pytest.mark.parametrize(
    "current",
    [ProjectStatus.pilot, ProjectStatus.scaling, ProjectStatus.production, ProjectStatus.paused],
)
def test_in_progress_never_moves_project_backward(current: ProjectStatus) -> None:
    assert decide_project_status(current, [IP]) is None


def test_planning_without_active_phase_is_noop() -> None:
    assert decide_project_status(ProjectStatus.planning, [NS, D, C]) is None


def test_completed_project_with_reopened_phase_is_left_alone() -> None:
    assert decide_project_status(ProjectStatus.completed, [C, IP]) is None


def test_project_sync_changed_flag() -> None:
    pid = uuid4()
    assert ProjectSync(pid, ProjectStatus.planning, ProjectStatus.pilot).changed is True
    assert ProjectSync(pid, ProjectStatus.pilot, ProjectStatus.pilot).changed is False
