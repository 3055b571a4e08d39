"""Alert model for Waymark.

Alerts are raised by the roadmap alerter after a recalculation: a phase
became delayed, a phase or milestone completed, or phase progress crossed a
configured threshold. Delivering alerts to people is out of scope; they are
stored rows that a dashboard reads.
"""

from __future__ import annotations

import enum
import uuid
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from waymark.database.models.base import Base, TimestampMixin


class AlertKind(enum.Enum):
    """What triggered an alert."""

    delay = "delay"
    completion = "completion"
    progress_threshold = "progress_threshold"


class AlertSeverity(enum.Enum):
    """How urgent an alert is."""

    info = "info"
    warning = "warning"
    critical = "critical"


class AlertStatus(enum.Enum):
    """Alert lifecycle: active until someone resolves it."""

    active = "active"
    resolved = "resolved"


class Alert(TimestampMixin, Base):
    """A roadmap alert attached to a project.

    Attributes:
        project_id: Project the alert belongs to.
        phase_id: Phase that triggered the alert, if any.
        kind: Trigger category, used for de-duplication.
        title: Short headline.
        message: Human-readable explanation.
        severity: info, warning or critical.
        status: active or resolved.
        details: Structured context (ids, progress, thresholds).
    """

    __tablename__ = "alerts"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    phase_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    kind: Mapped[AlertKind] = mapped_column(
        Enum(AlertKind, name="alert_kind"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[AlertSeverity] = mapped_column(
        Enum(AlertSeverity, name="alert_severity"),
        default=AlertSeverity.info,
        nullable=False,
    )
    status: Mapped[AlertStatus] = mapped_column(
        Enum(AlertStatus, name="alert_status"),
        default=AlertStatus.active,
        nullable=False,
    )
    details: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )
