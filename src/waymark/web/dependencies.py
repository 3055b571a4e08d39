"""FastAPI dependencies shared by the Waymark routers.

Everything is read from ``app.state``, which the application lifespan
populates (tests assign the same attributes directly).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.config import WaymarkConfig
    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import RoadmapTracker


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Return the session factory from app state."""
    return request.app.state.session_factory  # type: ignore[no-any-return]


def get_tracker(request: Request) -> RoadmapTracker:
    """Return the roadmap tracker from app state."""
    return request.app.state.tracker  # type: ignore[no-any-return]


def get_alerter(request: Request) -> RoadmapAlerter:
    """Return the roadmap alerter from app state."""
    return request.app.state.alerter  # type: ignore[no-any-return]


def get_config(request: Request) -> WaymarkConfig:
    """Return the application configuration from app state."""
    return request.app.state.config  # type: ignore[no-any-return]
