"""ORM models exposed for metadata discovery."""
from app.db.models.calendar_event import CalendarEvent
from app.db.models.holiday import Holiday

__all__ = [
    "CalendarEvent",
    "Holiday",
]
