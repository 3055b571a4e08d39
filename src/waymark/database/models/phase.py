"""Phase model for Waymark.

Defines the Phase table and PhaseStatus enum. A phase is one stage of a
project's delivery roadmap. Its progress and status are derived by the
roadmap tracker from the phase's milestones, and every automatic change is
mirrored into the phase_history table.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from waymark.database.models.base import Base, TimestampMixin


class PhaseStatus(enum.Enum):
    """Lifecycle status for a roadmap phase.

    States:
        not_started: Entry state, nothing has happened yet.
        in_progress: Work has started or some milestones are done.
        completed: All milestones done; terminal for automatic transitions.
        delayed: Target end date has passed without completion.
        blocked: Set manually only; never produced by the tracker.
    """

    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"
    delayed = "delayed"
    blocked = "blocked"


class Phase(TimestampMixin, Base):
    """A stage of a project's delivery roadmap.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the owning project.
        name: Phase name shown on the roadmap.
        description: Optional free-text description.
        phase_order: Display/dependency order within the project.
        status: Current lifecycle status.
        progress_percentage: 0-100, None until first calculated.
        start_date: Planned or actual start.
        target_end_date: Planned end; used for delay detection.
        end_date: Stamped when the phase completes.
        delay_reason: Why the phase was marked delayed.
        auto_calculated_progress: True when progress was derived by the tracker.
        last_auto_calculated_at: Time of the last tracker progress write.
        milestones: Completion checkpoints of this phase.
    """

    __tablename__ = "phases"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    phase_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[PhaseStatus] = mapped_column(
        Enum(PhaseStatus, name="phase_status"),
        default=PhaseStatus.not_started,
        nullable=False,
    )
    progress_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    target_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    delay_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    auto_calculated_progress: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    last_auto_calculated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    milestones: Mapped[list["Milestone"]] = relationship(  # noqa: F821
        "Milestone",
        order_by="Milestone.created_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
