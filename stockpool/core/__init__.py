"""Core infrastructure: settings, logging, exceptions, rate limiting."""

from .config import settings
from .exceptions import (
    AppException,
    ConfigurationError,
    NetworkError,
    NotFoundError,
    SourceError,
    UpstreamError,
    ValidationError,
)


__all__ = [
    "AppException",
    "ConfigurationError",
    "NetworkError",
    "NotFoundError",
    "SourceError",
    "UpstreamError",
    "ValidationError",
    "settings",
]
