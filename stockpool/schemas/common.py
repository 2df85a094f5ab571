"""Common schemas and error responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response schema (RFC 7807 inspired)."""

    success: bool = Field(default=False)
    error: str = Field(..., description="Error code", examples=["UPSTREAM_ERROR"])
    message: str = Field(..., description="Human-readable error message")
    status: int = Field(..., description="HTTP status code")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Additional error details"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "error": "UPSTREAM_ERROR",
                "message": "Tushare API error: token invalid (code: 40101)",
                "status": 502,
            }
        }
    }


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall health status", examples=["healthy", "degraded"])
    version: str = Field(..., description="Application version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    checks: Dict[str, bool] = Field(default_factory=dict, description="Individual configuration checks")
    rate_limiter: Optional[Dict[str, Any]] = Field(None, description="Shared Tushare rate limiter state")


class SourceStatus(BaseModel):
    """Outcome of one upstream dataset fetch."""

    source: str = Field(..., description="Tushare dataset name")
    ok: bool
    rows: int = Field(..., description="Rows returned by the provider")
    error: Optional[str] = None


class ResponseMeta(BaseModel):
    """Metadata block of a successful data response."""

    total: int = Field(..., description="Number of items in data")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sources: Dict[str, SourceStatus] = Field(default_factory=dict)
    query: Dict[str, Any] = Field(default_factory=dict, description="Effective query parameters")


class MessageResponse(BaseModel):
    """Simple message response."""

    success: bool = True
    message: str = Field(..., description="Response message")
