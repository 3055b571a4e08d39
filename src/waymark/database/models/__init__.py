"""SQLAlchemy ORM models for Waymark.

This module defines the database schema: projects, roadmap phases,
milestones, their append-only history tables, and roadmap alerts.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from waymark.database.models.alert import Alert, AlertKind, AlertSeverity, AlertStatus
from waymark.database.models.base import Base, TimestampMixin
from waymark.database.models.history import ChangeReason, MilestoneHistory, PhaseHistory
from waymark.database.models.milestone import Milestone
from waymark.database.models.phase import Phase, PhaseStatus
from waymark.database.models.project import Project, ProjectStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "Project",
    "ProjectStatus",
    "Phase",
    "PhaseStatus",
    "Milestone",
    "PhaseHistory",
    "MilestoneHistory",
    "ChangeReason",
    "Alert",
    "AlertKind",
    "AlertSeverity",
    "AlertStatus",
]
