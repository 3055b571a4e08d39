"""Declarative base and shared columns for the roadmap tables.

Every Waymark table carries a client-generated UUID key and database-side
created/updated timestamps through TimestampMixin:

    >>> class Checkpoint(TimestampMixin, Base):
    ...     __tablename__ = "checkpoints"
    ...     label: Mapped[str] = mapped_column(Text, nullable=False)
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base holding the metadata of every Waymark model."""


class TimestampMixin:
    """UUID primary key plus created_at/updated_at.

    List it before Base in the bases of a model.

    Attributes:
        id: Primary key, generated in Python so SQLite and PostgreSQL
            agree on the value before the INSERT.
        created_at: Set by the database when the row is inserted.
        updated_at: Set on insert and refreshed by every UPDATE.
    """

    # Server-generated timestamps come back via RETURNING; async sessions
    # cannot lazy-load them afterwards
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
