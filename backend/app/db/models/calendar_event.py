"""Calendar event ORM model (the tasks being scheduled)."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Text, func, text as sa_text

from app.db.base import Base


def _new_event_id() -> str:
    return uuid4().hex


class CalendarEvent(Base):
    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("ix_calendar_events_calendar_id", "calendar_id"),
        Index("ix_calendar_events_start_at", "start_at"),
        Index("ix_calendar_events_start_date", "start_date"),
    )

    id = Column(Text, primary_key=True, default=_new_event_id)
    calendar_id = Column(Text, nullable=False, default="primary")
    title = Column(Text, nullable=False)
    # Plain text plus an optional embedded metadata block.
    description = Column(Text, nullable=False, default="")
    location = Column(Text, nullable=False, default="")
    status = Column(Text, nullable=False, default="confirmed", server_default=sa_text("'confirmed'"))
    all_day = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    # Timed events, stored in UTC.
    start_at = Column(DateTime(timezone=True), nullable=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    # All-day events; end_date is exclusive.
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    creator_email = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
