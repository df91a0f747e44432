# backend/salon_booking/main.py
"""
FastAPI application for the salon booking engine.

Mounts the v1 routers under /api/v1 and exposes /health and /metrics.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from pydantic import Field

from .core.config import settings
from .core.constants import API_TITLE, API_VERSION, BRAND_NAME
from .database import init_db
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import availability as availability_v1
from .routes.v1 import bookings as bookings_v1
from .routes.v1 import schedule_blocks as schedule_blocks_v1
from .schemas.base import StandardizedModel

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


class HealthResponse(StandardizedModel):
    """Response for health check endpoint."""

    status: str = Field(description="Health status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    environment: str = Field(description="Environment name")
    timestamp: str = Field(description="UTC ISO8601Z timestamp of the health response")


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(
        f"Environment: {settings.environment}, timezone: {settings.business_timezone}, "
        f"locks: {'redis' if settings.redis_url else 'disabled'}"
    )
    if not (settings.is_production or settings.is_testing):
        init_db()
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=app_lifespan,
    )

    # V1 routers get their prefixes here
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(availability_v1.router, prefix="/availability")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(schedule_blocks_v1.router, prefix="/schedule-blocks")
    app.include_router(api_v1)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service=f"{BRAND_NAME.lower().replace(' ', '-')}-api",
            version=API_VERSION,
            environment=settings.environment,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        return Response(
            content=prometheus_metrics.get_metrics(),
            media_type=prometheus_metrics.get_content_type(),
        )

    return app


app = create_app()
