"""API routes package."""

from . import calendar, health, stocks


__all__ = [
    "calendar",
    "health",
    "stocks",
]
