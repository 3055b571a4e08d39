"""Milestone model for Waymark.

A milestone is a discrete completion checkpoint belonging to a phase. The
ratio of completed milestones is what drives phase progress.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from waymark.database.models.base import Base, TimestampMixin


class Milestone(TimestampMixin, Base):
    """A completion checkpoint within a phase.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        phase_id: Foreign key to the owning phase.
        name: Milestone name.
        description: Optional free-text description.
        deliverables: Optional description of what is delivered.
        target_date: Planned completion date.
        is_completed: Completion flag.
        completed_date: Set when is_completed becomes true, cleared when it
            becomes false.
    """

    __tablename__ = "milestones"

    phase_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("phases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    deliverables: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_completed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    completed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
