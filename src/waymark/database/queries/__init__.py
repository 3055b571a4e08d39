"""Database query functions for Waymark.

This module provides async query functions for all database entities:
- Project CRUD operations
- Phase CRUD plus the progress/status writes of the roadmap tracker
- Milestone CRUD with completion bookkeeping
- Append-only phase and milestone history
- Roadmap alerts

Query functions flush but never commit; callers wrap them in
``async with session.begin()``.
"""

from waymark.database.queries.alert import create_alert, find_active_alert, list_alerts
from waymark.database.queries.history import (
    insert_milestone_history,
    insert_phase_history,
    list_milestone_history,
    list_phase_history,
    list_phase_milestone_history,
)
from waymark.database.queries.milestone import (
    create_milestone,
    delete_milestone,
    get_milestone,
    list_milestones,
    update_milestone,
)
from waymark.database.queries.phase import (
    apply_calculated_progress,
    apply_phase_status,
    create_phase,
    get_phase,
    list_phase_ids,
    list_phases,
    update_phase,
)
from waymark.database.queries.project import (
    create_project,
    get_project,
    list_project_ids,
    list_projects,
    update_project,
)

__all__ = [
    # Project queries
    "create_project",
    "get_project",
    "list_projects",
    "list_project_ids",
    "update_project",
    # Phase queries
    "create_phase",
    "get_phase",
    "list_phases",
    "list_phase_ids",
    "update_phase",
    "apply_calculated_progress",
    "apply_phase_status",
    # Milestone queries
    "create_milestone",
    "get_milestone",
    "list_milestones",
    "update_milestone",
    "delete_milestone",
    # History queries
    "insert_phase_history",
    "insert_milestone_history",
    "list_phase_history",
    "list_milestone_history",
    "list_phase_milestone_history",
    # Alert queries
    "create_alert",
    "find_active_alert",
    "list_alerts",
]
