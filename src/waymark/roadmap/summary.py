"""Roadmap summary for a project's phases."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from waymark.database.models.phase import Phase, PhaseStatus


@dataclass(frozen=True)
class RoadmapSummary:
    """Aggregate view of a project's roadmap.

    Attributes:
        overall_progress: Completed phases as a percentage of all phases.
        current_phase: The phase the project is working on, if any.
        total_phases: Number of phases.
        completed_phases: Number of completed phases.
    """

    overall_progress: float
    current_phase: Phase | None
    total_phases: int
    completed_phases: int


def summarize_roadmap(phases: Sequence[Phase]) -> RoadmapSummary:
    """Summarise phases given in roadmap order.

    The current phase is the first in progress, else the first not started,
    else the last phase.
    """
    total = len(phases)
    completed = sum(1 for p in phases if p.status == PhaseStatus.completed)
    overall = round(completed / total * 100, 2) if total else 0.0

    current = next((p for p in phases if p.status == PhaseStatus.in_progress), None)
    if current is None:
        current = next((p for p in phases if p.status == PhaseStatus.not_started), None)
    if current is None and phases:
        current = phases[-1]

    return RoadmapSummary(
        overall_progress=overall,
        current_phase=current,
        total_phases=total,
        completed_phases=completed,
    )
