"""FastAPI application entry point."""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from vehicle_tracking.api.routes import health, tracking
from vehicle_tracking.config import settings
from vehicle_tracking.infrastructure.database.connection import engine
from vehicle_tracking.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info(
        "vehicle_tracking_api_starting",
        providers=[portal.name for portal in settings.providers],
        parallel_provider_groups=settings.parallel_provider_groups,
    )
    yield
    await engine.dispose()
    logger.info("vehicle_tracking_api_stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Vehicle Tracking",
        description="Fetches fleet positions from GPS provider portals and stores them.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(tracking.router)
    return app


app = create_app()
