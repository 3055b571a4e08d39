"""Roadmap auto-tracking for Waymark.

Derives phase progress from milestones, resolves phase status from progress
and dates, records history, rolls phase status up to the project and raises
alerts.
"""

from waymark.roadmap.alerts import RoadmapAlerter, crossed_threshold
from waymark.roadmap.clock import Clock, as_utc, utc_now
from waymark.roadmap.history import HistoryRecorder
from waymark.roadmap.jobs import (
    DailySyncReport,
    ProjectsSyncReport,
    run_daily_roadmap_sync,
    sync_all_projects,
    sync_project_phases,
)
from waymark.roadmap.progress import calculate_phase_progress, calculate_progress
from waymark.roadmap.status import (
    STATUS_RULES,
    PhaseSnapshot,
    StatusRule,
    is_delayed,
    match_rule,
    resolve_status,
)
from waymark.roadmap.summary import RoadmapSummary, summarize_roadmap
from waymark.roadmap.sync import ProjectStatusSynchronizer, ProjectSync, decide_project_status
from waymark.roadmap.tracker import PhaseRecalculation, ProjectRecalculation, RoadmapTracker

__all__ = [
    "Clock",
    "utc_now",
    "as_utc",
    "calculate_progress",
    "calculate_phase_progress",
    "PhaseSnapshot",
    "StatusRule",
    "STATUS_RULES",
    "is_delayed",
    "match_rule",
    "resolve_status",
    "HistoryRecorder",
    "decide_project_status",
    "ProjectSync",
    "ProjectStatusSynchronizer",
    "PhaseRecalculation",
    "ProjectRecalculation",
    "RoadmapTracker",
    "RoadmapAlerter",
    "crossed_threshold",
    "DailySyncReport",
    "ProjectsSyncReport",
    "run_daily_roadmap_sync",
    "sync_project_phases",
    "sync_all_projects",
    "RoadmapSummary",
    "summarize_roadmap",
]
