"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from marketplace.core.config import settings
from marketplace.core.logging_config import configure_logging
from marketplace.db.session import engine
from marketplace.errors import AppError, app_error_handler
from marketplace.routers import health, opportunity

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    - On startup: configure logging
    - On shutdown: dispose of the database engine
    """
    configure_logging()
    logger.info("Starting %s...", settings.APP_NAME)

    yield

    logger.info("Shutting down %s...", settings.APP_NAME)
    await engine.dispose()


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Backend API for the opportunity marketplace",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(opportunity.router)
