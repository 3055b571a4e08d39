"""Alert query functions for Waymark."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waymark.database.models.alert import Alert, AlertKind, AlertSeverity, AlertStatus

logger = structlog.get_logger(__name__)


async def create_alert(
    session: AsyncSession,
    project_id: UUID,
    kind: AlertKind,
    title: str,
    message: str,
    severity: AlertSeverity = AlertSeverity.info,
    phase_id: UUID | None = None,
    details: dict[str, Any] | None = None,
) -> Alert:
    """Create an active alert.

    Args:
        session: Active async database session.
        project_id: Project the alert belongs to.
        kind: Trigger category.
        title: Short headline.
        message: Human-readable explanation.
        severity: Alert severity.
        phase_id: Phase that triggered the alert, if any.
        details: Structured context stored as JSON.

    Returns:
        The newly created Alert.
    """
    alert = Alert(
        project_id=project_id,
        phase_id=phase_id,
        kind=kind,
        title=title,
        message=message,
        severity=severity,
        status=AlertStatus.active,
        details=details or {},
    )
    session.add(alert)
    await session.flush()

    logger.info(
        "alert_created",
        alert_id=str(alert.id),
        project_id=str(project_id),
        phase_id=str(phase_id) if phase_id else None,
        kind=kind.value,
        severity=severity.value,
    )

    return alert


async def find_active_alert(
    session: AsyncSession,
    phase_id: UUID,
    kind: AlertKind,
) -> Alert | None:
    """Return an active alert of the given kind for a phase, if one exists."""
    stmt = (
        select(Alert)
        .where(Alert.phase_id == phase_id)
        .where(Alert.kind == kind)
        .where(Alert.status == AlertStatus.active)
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_alerts(
    session: AsyncSession,
    project_id: UUID,
    status_filter: AlertStatus | None = None,
) -> list[Alert]:
    """List a project's alerts, newest first."""
    stmt = select(Alert).where(Alert.project_id == project_id)

    if status_filter is not None:
        stmt = stmt.where(Alert.status == status_filter)

    stmt = stmt.order_by(Alert.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())
