"""HTTP API for Waymark.

A FastAPI application exposing projects, phases and milestones. Milestone
mutations drive the roadmap tracker; a cron endpoint runs the daily sync.
"""

from __future__ import annotations

from waymark.web.app import create_app
from waymark.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
]
