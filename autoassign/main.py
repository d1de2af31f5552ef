"""autoassign — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from autoassign.adapters.persistence.database import engine
from autoassign.config import settings
from autoassign.infrastructure.api.routes_automation import router as automation_router
from autoassign.infrastructure.api.routes_health import router as health_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    try:
        async with engine.begin():
            pass  # Connection pool warmed up
        logger.info("Database connection established")
    except Exception as e:
        logger.warning("Database not available on startup: %s", e)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="autoassign",
        description="Rule-driven vendor and designer auto-assignment for service requests",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router, prefix="/api")
    app.include_router(automation_router, prefix="/api")

    return app


app = create_app()
