"""Audit history models for Waymark.

PhaseHistory and MilestoneHistory are append-only: rows are inserted as a
side effect of a tracked change and are never updated or deleted by the
application. Each row captures the previous and new value plus the reason
for the change.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from waymark.database.models.base import Base, TimestampMixin
from waymark.database.models.phase import PhaseStatus


class ChangeReason(enum.Enum):
    """Why a tracked value changed.

    Values:
        auto_calculated: Derived by the roadmap tracker.
        manual: Entered by a user through the CRUD layer.
    """

    auto_calculated = "auto_calculated"
    manual = "manual"


class PhaseHistory(TimestampMixin, Base):
    """One recorded change of a phase's status or progress.

    Exactly one of the (status, previous_status) or (progress_percentage,
    previous_progress) pairs is populated per row.

    Attributes:
        phase_id: Phase the change belongs to.
        status: New status, for status changes.
        previous_status: Status before the change.
        progress_percentage: New progress, for progress changes.
        previous_progress: Progress before the change.
        change_reason: auto_calculated or manual.
        changed_at: When the change happened, from the tracker's clock.
    """

    __tablename__ = "phase_history"

    phase_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("phases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[PhaseStatus | None] = mapped_column(
        Enum(PhaseStatus, name="phase_status"),
        nullable=True,
    )
    previous_status: Mapped[PhaseStatus | None] = mapped_column(
        Enum(PhaseStatus, name="phase_status"),
        nullable=True,
    )
    progress_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    previous_progress: Mapped[float | None] = mapped_column(Float, nullable=True)
    change_reason: Mapped[ChangeReason] = mapped_column(
        Enum(ChangeReason, name="change_reason"),
        nullable=False,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )


class MilestoneHistory(TimestampMixin, Base):
    """One recorded change of a milestone's completion flag.

    milestone_id carries no foreign key so the audit trail survives
    deletion of the milestone itself.

    Attributes:
        milestone_id: Milestone the change belongs to.
        phase_id: Owning phase at the time of the change.
        is_completed: New completion flag.
        previous_completed: Completion flag before the change.
        completed_date: Completion timestamp written with the change.
        change_reason: auto_calculated or manual.
        changed_at: When the change happened.
    """

    __tablename__ = "milestone_history"

    milestone_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    phase_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    previous_completed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    completed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    change_reason: Mapped[ChangeReason] = mapped_column(
        Enum(ChangeReason, name="change_reason"),
        nullable=False,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
