"""Project model for Waymark.

Defines the Project table and ProjectStatus enum. A project owns an ordered
set of delivery phases; its status is partly driven by the roadmap tracker,
which rolls phase state up into the project.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waymark.database.models.base import Base, TimestampMixin


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        planning: Initial state, roadmap being drafted.
        pilot: First phases are running.
        scaling: Rolled out beyond the pilot.
        production: Running in production.
        paused: Work temporarily suspended.
        completed: Every phase finished.
    """

    planning = "planning"
    pilot = "pilot"
    scaling = "scaling"
    production = "production"
    paused = "paused"
    completed = "completed"


class Project(TimestampMixin, Base):
    """An initiative whose delivery roadmap is tracked by Waymark.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        description: Optional free-text description.
        status: Current lifecycle status.
        start_date: Planned or actual start.
        target_completion_date: Planned completion.
        actual_completion_date: Stamped once when the tracker completes the
            project automatically.
        phases: Delivery phases ordered by phase_order.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.planning,
        nullable=False,
    )
    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    target_completion_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    actual_completion_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    phases: Mapped[list["Phase"]] = relationship(  # noqa: F821
        "Phase",
        order_by="Phase.phase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
