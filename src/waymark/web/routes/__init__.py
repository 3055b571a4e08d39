"""FastAPI routers for the Waymark HTTP API."""

from __future__ import annotations

from waymark.web.routes.cron import create_cron_router
from waymark.web.routes.health import HealthResponse, ReadinessResponse, create_health_router
from waymark.web.routes.milestones import (
    MilestoneCreate,
    MilestoneResponse,
    MilestoneUpdate,
    create_milestones_router,
)
from waymark.web.routes.phases import (
    PhaseCreate,
    PhaseDetailResponse,
    PhaseResponse,
    PhaseUpdate,
    create_phases_router,
)
from waymark.web.routes.projects import (
    ProjectCreate,
    ProjectResponse,
    RoadmapResponse,
    create_projects_router,
)

__all__ = [
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Projects
    "ProjectCreate",
    "ProjectResponse",
    "RoadmapResponse",
    "create_projects_router",
    # Phases
    "PhaseCreate",
    "PhaseUpdate",
    "PhaseResponse",
    "PhaseDetailResponse",
    "create_phases_router",
    # Milestones
    "MilestoneCreate",
    "MilestoneUpdate",
    "MilestoneResponse",
    "create_milestones_router",
    # Cron
    "create_cron_router",
]
