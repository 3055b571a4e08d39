"""Waymark - Roadmap auto-tracking service.

This package derives delivery-phase progress and lifecycle status from
milestones, detects schedule delays, rolls phase state up into the owning
project, and keeps an append-only audit trail of every automatic change.
"""

__version__ = "0.1.0"
