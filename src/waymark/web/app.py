"""FastAPI application factory for Waymark.

This module provides the application factory that creates and configures a
FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- Database connection lifecycle management
- The roadmap tracker and alerter shared by all routers
- Health, project, phase, milestone and cron endpoints

Example usage:
    >>> from waymark.config import WaymarkConfig
    >>> from waymark.web.app import create_app
    >>>
    >>> app = create_app(WaymarkConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waymark import __version__
from waymark.config import WaymarkConfig
from waymark.database.connection import get_engine, get_session_factory
from waymark.errors import NotFoundError
from waymark.logging import get_logger
from waymark.roadmap.alerts import RoadmapAlerter
from waymark.roadmap.tracker import RoadmapTracker
from waymark.web.middleware import RequestLoggingMiddleware
from waymark.web.routes.cron import create_cron_router
from waymark.web.routes.health import create_health_router
from waymark.web.routes.milestones import create_milestones_router
from waymark.web.routes.phases import create_phases_router
from waymark.web.routes.projects import create_projects_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


def init_app_state(
    app: FastAPI,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Attach the session factory, tracker and alerter to app.state.

    Args:
        app: Application whose ``state.config`` is already set.
        session_factory: Factory for all request and tracker sessions.
    """
    config: WaymarkConfig = app.state.config
    app.state.session_factory = session_factory
    app.state.tracker = RoadmapTracker.from_config(session_factory, config.tracking)
    app.state.alerter = RoadmapAlerter(config.tracking.alert_thresholds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the database pool on startup and dispose of it on shutdown."""
    config: WaymarkConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = get_engine(config.database)
    app.state.engine = engine
    init_app_state(app, get_session_factory(engine))

    logger.info(
        "database_pool_initialized",
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )

    yield

    logger.info("app_shutdown_begin")
    await engine.dispose()
    logger.info("database_pool_disposed")


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map NotFoundError raised anywhere in a handler to a 404."""
    logger.warning("entity_not_found", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


def create_app(config: WaymarkConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional WaymarkConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = WaymarkConfig()

    app = FastAPI(
        title="Waymark",
        version=__version__,
        description="Roadmap auto-tracking service",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(NotFoundError, not_found_handler)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_phases_router())
    app.include_router(create_milestones_router())
    app.include_router(create_cron_router())

    logger.info("app_created", cors_origins=config.web.cors_origins, version=__version__)

    return app
