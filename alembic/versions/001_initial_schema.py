"""Initial schema for Waymark.

Creates the roadmap tables: projects, phases, milestones, phase_history,
milestone_history and alerts, together with their enum types.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROJECT_STATUS = ("planning", "pilot", "scaling", "production", "paused", "completed")
PHASE_STATUS = ("not_started", "in_progress", "completed", "delayed", "blocked")
CHANGE_REASON = ("auto_calculated", "manual")
ALERT_KIND = ("delay", "completion", "progress_threshold")
ALERT_SEVERITY = ("info", "warning", "critical")
ALERT_STATUS = ("active", "resolved")


def _enum(values: tuple[str, ...], name: str) -> sa.Enum:
    # Types are created up front; columns only reference them
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


ENUM_TYPES = (
    (PROJECT_STATUS, "project_status"),
    (PHASE_STATUS, "phase_status"),
    (CHANGE_REASON, "change_reason"),
    (ALERT_KIND, "alert_kind"),
    (ALERT_SEVERITY, "alert_severity"),
    (ALERT_STATUS, "alert_status"),
)


def _create_enum_types(bind: sa.engine.Connection) -> None:
    for values, name in ENUM_TYPES:
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        _create_enum_types(bind)

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            _enum(PROJECT_STATUS, "project_status"),
            server_default="planning",
            nullable=False,
        ),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("target_completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_completion_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "phases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("phase_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "status",
            _enum(PHASE_STATUS, "phase_status"),
            server_default="not_started",
            nullable=False,
        ),
        sa.Column("progress_percentage", sa.Float(), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("target_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delay_reason", sa.Text(), nullable=True),
        sa.Column(
            "auto_calculated_progress",
            sa.Boolean(),
            server_default=sa.false(),
            nullable=False,
        ),
        sa.Column("last_auto_calculated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_phases_project_id", "phases", ["project_id"])

    op.create_table(
        "milestones",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "phase_id",
            sa.Uuid(),
            sa.ForeignKey("phases.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("deliverables", sa.Text(), nullable=True),
        sa.Column("target_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_milestones_phase_id", "milestones", ["phase_id"])

    op.create_table(
        "phase_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "phase_id",
            sa.Uuid(),
            sa.ForeignKey("phases.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", _enum(PHASE_STATUS, "phase_status"), nullable=True),
        sa.Column("previous_status", _enum(PHASE_STATUS, "phase_status"), nullable=True),
        sa.Column("progress_percentage", sa.Float(), nullable=True),
        sa.Column("previous_progress", sa.Float(), nullable=True),
        sa.Column("change_reason", _enum(CHANGE_REASON, "change_reason"), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_phase_history_phase_id", "phase_history", ["phase_id"])

    # No foreign keys: history outlives deleted milestones
    op.create_table(
        "milestone_history",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("milestone_id", sa.Uuid(), nullable=False),
        sa.Column("phase_id", sa.Uuid(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("previous_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("change_reason", _enum(CHANGE_REASON, "change_reason"), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_milestone_history_milestone_id", "milestone_history", ["milestone_id"]
    )
    op.create_index("ix_milestone_history_phase_id", "milestone_history", ["phase_id"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("phase_id", sa.Uuid(), nullable=True),
        sa.Column("kind", _enum(ALERT_KIND, "alert_kind"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "severity",
            _enum(ALERT_SEVERITY, "alert_severity"),
            server_default="info",
            nullable=False,
        ),
        sa.Column(
            "status",
            _enum(ALERT_STATUS, "alert_status"),
            server_default="active",
            nullable=False,
        ),
        sa.Column(
            "details",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            server_default="{}",
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_alerts_project_id", "alerts", ["project_id"])


def downgrade() -> None:
    op.drop_table("alerts")
    op.drop_table("milestone_history")
    op.drop_table("phase_history")
    op.drop_table("milestones")
    op.drop_table("phases")
    op.drop_table("projects")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for _, name in reversed(ENUM_TYPES):
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
