"""Exception hierarchy for Waymark.

All errors raised by the roadmap tracker and the query layer derive from
TrackingError so callers can treat a failed recalculation uniformly:

    TrackingError
    ├── NotFoundError
    │   ├── ProjectNotFoundError
    │   ├── PhaseNotFoundError
    │   └── MilestoneNotFoundError
    └── PersistenceError
"""

from __future__ import annotations

from uuid import UUID


class TrackingError(Exception):
    """Base class for all Waymark errors."""


class NotFoundError(TrackingError):
    """Raised when a referenced entity does not exist.

    Attributes:
        entity: Entity name ("phase", "project", "milestone").
        entity_id: Identifier that was looked up.
    """

    entity = "entity"

    def __init__(self, entity_id: UUID | str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity.capitalize()} {entity_id} not found")


class ProjectNotFoundError(NotFoundError):
    """Raised when a project does not exist."""

    entity = "project"


class PhaseNotFoundError(NotFoundError):
    """Raised when a phase does not exist."""

    entity = "phase"


class MilestoneNotFoundError(NotFoundError):
    """Raised when a milestone does not exist."""

    entity = "milestone"


class PersistenceError(TrackingError):
    """Raised when a storage read or write fails during tracking.

    The original SQLAlchemy error is chained as __cause__.

    Attributes:
        operation: What was being done when storage failed.
        entity_id: Identifier of the phase or project involved.
    """

    def __init__(self, operation: str, entity_id: UUID | str | None = None):
        self.operation = operation
        self.entity_id = entity_id
        msg = f"Storage failure during {operation}"
        if entity_id is not None:
            msg += f" for {entity_id}"
        super().__init__(msg)
