"""Project query functions for Waymark.

Provides async functions for creating, reading and updating Project records
using the SQLAlchemy 2.0 select() API. Functions flush but never commit:
the caller owns the transaction (``async with session.begin()``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waymark.database.models.project import Project, ProjectStatus
from waymark.errors import ProjectNotFoundError

logger = structlog.get_logger(__name__)


async def create_project(
    session: AsyncSession,
    name: str,
    description: str | None = None,
    status: ProjectStatus = ProjectStatus.planning,
    start_date: datetime | None = None,
    target_completion_date: datetime | None = None,
) -> Project:
    """Create a new project.

    Args:
        session: Active async database session.
        name: Human-readable project name.
        description: Optional description.
        status: Initial lifecycle status.
        start_date: Optional planned start.
        target_completion_date: Optional planned completion.

    Returns:
        The newly created Project instance.
    """
    project = Project(
        name=name,
        description=description,
        status=status,
        start_date=start_date,
        target_completion_date=target_completion_date,
        phases=[],
    )
    session.add(project)
    await session.flush()

    logger.info(
        "project_created",
        project_id=str(project.id),
        name=name,
        status=project.status.value,
    )

    return project


async def get_project(
    session: AsyncSession,
    project_id: UUID,
    for_update: bool = False,
) -> Project | None:
    """Retrieve a project (with its phases) by ID.

    Args:
        session: Active async database session.
        project_id: UUID of the project to retrieve.
        for_update: Lock the project row until the transaction ends.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = select(Project).where(Project.id == project_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    status_filter: ProjectStatus | None = None,
) -> list[Project]:
    """List projects, optionally filtered by status, newest first."""
    stmt = select(Project)

    if status_filter is not None:
        stmt = stmt.where(Project.status == status_filter)

    stmt = stmt.order_by(Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_project_ids(session: AsyncSession) -> list[UUID]:
    """Return the IDs of every project."""
    result = await session.execute(select(Project.id).order_by(Project.created_at))
    return list(result.scalars().all())


async def update_project(
    session: AsyncSession,
    project_id: UUID,
    **updates: Any,
) -> Project:
    """Update a project's fields.

    Args:
        session: Active async database session.
        project_id: UUID of the project to update.
        **updates: Field names and values to update.

    Returns:
        The updated Project instance.

    Raises:
        ProjectNotFoundError: If the project does not exist.
    """
    project = await get_project(session, project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)

    for field, value in updates.items():
        setattr(project, field, value)
    await session.flush()

    logger.info(
        "project_updated",
        project_id=str(project_id),
        fields_updated=list(updates.keys()),
    )

    return project
