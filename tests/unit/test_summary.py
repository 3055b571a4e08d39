"""Unit tests for the roadmap summary."""

from __future__ import annotations

from types import SimpleNamespace

from waymark.database.models.phase import PhaseStatus
from waymark.roadmap.summary import summarize_roadmap


def phase(name: str, status: PhaseStatus) -> SimpleNamespace:
    return SimpleNamespace(name=name, status=status)


def test_empty_roadmap() -> None:
    summary = summarize_roadmap([])
    assert summary.overall_progress == 0.0
    assert summary.current_phase is None
    assert summary.total_phases == 0
    assert summary.completed_phases == 0


def test_overall_progress_counts_completed_phases() -> None:
    phases = [
        phase("discovery", PhaseStatus.completed),
        phase("pilot", PhaseStatus.completed),
        phase("rollout", PhaseStatus.not_started),
    ]
    summary = summarize_roadmap(phases)
    assert summary.overall_progress == 66.67
    assert summary.completed_phases == 2
    assert summary.total_phases == 3


def test_current_phase_prefers_in_progress() -> None:
    phases = [
        phase("discovery", PhaseStatus.completed),
        phase("pilot", PhaseStatus.not_started),
        phase("rollout", PhaseStatus.in_progress),
    ]
    assert summarize_roadmap(phases).current_phase.name == "rollout"


def test_current_phase_falls_back_to_first_not_started() -> None:
    phases = [
        phase("discovery", PhaseStatus.delayed),
        phase("pilot", PhaseStatus.not_started),
        phase("rollout", PhaseStatus.not_started),
    ]
    assert summarize_roadmap(phases).current_phase.name == "pilot"


def test_current_phase_falls_back_to_last() -> None:
    phases = [
        phase("discovery", PhaseStatus.completed),
        phase("rollout", PhaseStatus.delayed),
    ]
    assert summarize_roadmap(phases).current_phase.name == "rollout"
