"""Data providers - centralized external API access."""

from .results import FetchResult, capture, gather_optional
from .tushare_client import TushareClient, rows_from_payload


__all__ = [
    "FetchResult",
    "TushareClient",
    "capture",
    "gather_optional",
    "rows_from_payload",
]
