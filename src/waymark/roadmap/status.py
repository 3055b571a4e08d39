"""Phase status resolution for the roadmap tracker.

The status of a phase is derived from its progress, its milestones, its
dates and its current status by walking an ordered rule table; the first
rule whose guard matches decides the result. The table is the single source
of truth for the priority order:

    completed_is_terminal     current status completed       -> completed
    all_milestones_completed  milestones exist, all done     -> completed
    full_progress             progress == 100                -> completed
    past_target_end_date      target end date < now          -> delayed
    has_progress              progress > 0                   -> in_progress
    start_date_reached        start date <= now              -> in_progress
    default                                                  -> not_started

Resolution is stateless: it is re-evaluated from scratch on every call, so a
delayed phase whose target date moves into the future recovers on the next
recalculation without any special transition.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from waymark.database.models.phase import PhaseStatus
from waymark.roadmap.clock import as_utc

if TYPE_CHECKING:
    from waymark.database.models.phase import Phase


@dataclass(frozen=True)
class PhaseSnapshot:
    """The inputs status resolution needs, detached from the ORM.

    Attributes:
        progress: Freshly calculated progress percentage.
        milestone_flags: Completion flag of every milestone.
        current_status: Status before resolution.
        start_date: Phase start, if set.
        target_end_date: Phase target end, if set.
    """

    progress: float
    milestone_flags: tuple[bool, ...]
    current_status: PhaseStatus
    start_date: datetime | None = None
    target_end_date: datetime | None = None

    @classmethod
    def from_phase(cls, phase: Phase, progress: float) -> PhaseSnapshot:
        """Build a snapshot from a loaded phase and its new progress."""
        return cls(
            progress=progress,
            milestone_flags=tuple(m.is_completed for m in phase.milestones),
            current_status=phase.status,
            start_date=phase.start_date,
            target_end_date=phase.target_end_date,
        )

    @property
    def all_milestones_completed(self) -> bool:
        return bool(self.milestone_flags) and all(self.milestone_flags)


@dataclass(frozen=True)
class StatusRule:
    """One guard/result pair of the status rule table."""

    name: str
    guard: Callable[[PhaseSnapshot, datetime], bool]
    result: PhaseStatus


def is_delayed(
    target_end_date: datetime | None,
    current_status: PhaseStatus,
    now: datetime,
) -> bool:
    """Return True if the target end date has passed on an unfinished phase."""
    if target_end_date is None:
        return False
    return as_utc(target_end_date) < as_utc(now) and current_status != PhaseStatus.completed


def _start_date_reached(snapshot: PhaseSnapshot, now: datetime) -> bool:
    return snapshot.start_date is not None and as_utc(snapshot.start_date) <= as_utc(now)


STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(
        name="completed_is_terminal",
        guard=lambda s, now: s.current_status == PhaseStatus.completed,
        result=PhaseStatus.completed,
    ),
    StatusRule(
        name="all_milestones_completed",
        guard=lambda s, now: s.all_milestones_completed,
        result=PhaseStatus.completed,
    ),
    StatusRule(
        name="full_progress",
        guard=lambda s, now: s.progress == 100,
        result=PhaseStatus.completed,
    ),
    StatusRule(
        name="past_target_end_date",
        guard=lambda s, now: is_delayed(s.target_end_date, s.current_status, now),
        result=PhaseStatus.delayed,
    ),
    StatusRule(
        name="has_progress",
        guard=lambda s, now: s.progress > 0,
        result=PhaseStatus.in_progress,
    ),
    StatusRule(
        name="start_date_reached",
        guard=_start_date_reached,
        result=PhaseStatus.in_progress,
    ),
    StatusRule(
        name="default",
        guard=lambda s, now: True,
        result=PhaseStatus.not_started,
    ),
)


def match_rule(snapshot: PhaseSnapshot, now: datetime) -> StatusRule:
    """Return the first rule in STATUS_RULES whose guard matches.

    Args:
        snapshot: Phase state to evaluate.
        now: Evaluation time.

    Returns:
        The winning StatusRule. The final ``default`` rule always matches.
    """
    for rule in STATUS_RULES:
        if rule.guard(snapshot, now):
            return rule
    raise AssertionError("STATUS_RULES must end with an unconditional rule")


def resolve_status(snapshot: PhaseSnapshot, now: datetime) -> PhaseStatus:
    """Resolve the status a phase should have.

    Args:
        snapshot: Phase state to evaluate.
        now: Evaluation time.

    Returns:
        The resolved PhaseStatus. Never ``blocked``.
    """
    return match_rule(snapshot, now).result
