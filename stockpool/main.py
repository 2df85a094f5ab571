"""Application entry point."""

from __future__ import annotations

from stockpool.api.app import create_api_app
from stockpool.core.config import settings
from stockpool.core.logging import get_logger, setup_logging


setup_logging()
logger = get_logger("main")

# Application instance
app = create_api_app()

logger.info(
    f"{settings.app_name} v{settings.app_version} ({settings.environment}), "
    f"Tushare rate limit {settings.tushare_rate_limit_delay}ms"
)


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "stockpool.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
