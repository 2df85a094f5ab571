"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Stockpool API"
    app_version: str = "1.0.0"
    debug: bool = Field(
        default=False, description="Enable debug mode (disable in production)"
    )
    root_path: str = Field(default="", description="Root path for reverse proxy")
    environment: str = Field(
        default="production",
        description="Environment: development, staging, production",
    )

    # CORS
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins (no wildcards with credentials)",
    )

    # Tushare Pro
    tushare_token: str = Field(
        default="", alias="TUSHARE_TOKEN", description="Tushare Pro API token"
    )
    tushare_base_url: str = Field(
        default="http://api.waditu.com", description="Tushare Pro HTTP endpoint"
    )
    tushare_rate_limit_delay: int = Field(
        default=200,
        ge=0,
        le=60_000,
        alias="TUSHARE_RATE_LIMIT_DELAY",
        description="Minimum spacing between upstream calls in milliseconds",
    )
    external_api_timeout: int = Field(
        default=30, ge=1, le=120, description="External API timeout in seconds"
    )

    # Market
    market_timezone: str = Field(
        default="Asia/Shanghai", description="Timezone used for default trade dates"
    )
    top_industries: int = Field(
        default=10, ge=1, le=100, description="Industries listed in pool stats"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @property
    def rate_limit_interval(self) -> float:
        """Minimum upstream call spacing in seconds."""
        return self.tushare_rate_limit_delay / 1000.0

    @property
    def is_development(self) -> bool:
        """Development environments expose the interactive docs."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
