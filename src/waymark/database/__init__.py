"""Database layer for Waymark.

This module handles database connections and session management and
re-exports the ORM models.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from waymark.database.connection import get_engine, get_session_factory
from waymark.database.models import (
    Alert,
    AlertKind,
    AlertSeverity,
    AlertStatus,
    Base,
    ChangeReason,
    Milestone,
    MilestoneHistory,
    Phase,
    PhaseHistory,
    PhaseStatus,
    Project,
    ProjectStatus,
    TimestampMixin,
)

__all__ = [
    "get_engine",
    "get_session_factory",
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
