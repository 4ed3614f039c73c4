"""Public holiday ORM model, grouped by holiday calendar."""
from __future__ import annotations

from sqlalchemy import Column, Date, Integer, Text, UniqueConstraint

from app.db.base import Base


class Holiday(Base):
    __tablename__ = "holidays"
    __table_args__ = (UniqueConstraint("calendar_id", "day", name="uq_holidays_calendar_day"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    calendar_id = Column(Text, nullable=False)
    day = Column(Date, nullable=False)
    name = Column(Text, nullable=False, default="")
