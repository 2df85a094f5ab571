"""In-memory caches."""

from .calendar_cache import CalendarCache


__all__ = [
    "CalendarCache",
]
