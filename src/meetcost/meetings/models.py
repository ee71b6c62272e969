"""Meeting persistence model.

One table, ``meetings``, holding every owner's meetings. ``total_cost``
is a plain column written only by the repository, which always derives
it from the three cost inputs; it is never accepted from callers.

Types are dialect-neutral (Uuid, Numeric, timezone-aware DateTime) and
defaults are generated client-side, so the model works against any
SQLAlchemy async backend.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.meetcost.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingModel(Base):
    """A logged meeting and its derived cost.

    ``user_id`` is the opaque owner identity supplied by the identity
    provider; there is no users table on this side.
    """

    __tablename__ = "meetings"
    __table_args__ = (
        Index("ix_meetings_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    attendees_count: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    average_hourly_rate: Mapped[Decimal] = mapped_column(
        Numeric(asdecimal=True), nullable=False
    )
    total_cost: Mapped[Decimal | None] = mapped_column(
        Numeric(asdecimal=True), nullable=True
    )
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    meeting_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
