"""Scheduled-job trigger endpoint for Waymark.

``GET /cron/roadmap-sync`` runs the daily roadmap sync. When
``tracking.cron_secret`` is configured the request must carry
``Authorization: Bearer <secret>``; without a configured secret the endpoint
is open, which is meant for local use only.
"""

from __future__ import annotations

import hmac
from datetime import datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel

from waymark.logging import get_logger
from waymark.roadmap.jobs import run_daily_roadmap_sync
from waymark.web.dependencies import get_alerter, get_config, get_session_factory, get_tracker

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from waymark.config import WaymarkConfig
    from waymark.roadmap.alerts import RoadmapAlerter
    from waymark.roadmap.tracker import RoadmapTracker

logger = get_logger(__name__)


class SyncResponse(BaseModel):
    """Counters from one daily sync run."""

    success: bool
    message: str
    phases_checked: int
    delays_detected: int
    statuses_updated: int
    alerts_raised: int
    errors: list[str]
    timestamp: datetime


def _authorized(authorization: str | None, secret: str | None) -> bool:
    if secret is None:
        return True
    if authorization is None:
        return False
    return hmac.compare_digest(authorization, f"Bearer {secret}")


def create_cron_router() -> APIRouter:
    """Create the cron router."""
    router = APIRouter(prefix="/cron", tags=["cron"])

    @router.get("/roadmap-sync", response_model=SyncResponse)
    async def roadmap_sync(
        authorization: str | None = Header(default=None),
        config: WaymarkConfig = Depends(get_config),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        tracker: RoadmapTracker = Depends(get_tracker),  # noqa: B008
        alerter: RoadmapAlerter = Depends(get_alerter),  # noqa: B008
    ) -> SyncResponse:
        """Run the daily roadmap sync.

        Raises:
            HTTPException: 401 if the bearer secret is missing or wrong.
        """
        if not _authorized(authorization, config.tracking.cron_secret):
            logger.warning("cron_unauthorized", path="/cron/roadmap-sync")
            raise HTTPException(
                status_code=http_status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )

        report = await run_daily_roadmap_sync(tracker, alerter, session_factory)
        return SyncResponse(
            success=True,
            message="Daily roadmap sync completed",
            timestamp=tracker.clock(),
            **report.as_dict(),
        )

    return router
