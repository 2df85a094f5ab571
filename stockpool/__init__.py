"""Stockpool - A-share stock pool aggregation and trade calendar service."""

__version__ = "1.0.0"
