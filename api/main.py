"""
FastAPI host for the channel sync
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from api.routes import health, sync
from core.config import settings
from core.logging import setup_logging
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import SyncScheduler

setup_logging()

logger = logging.getLogger(__name__)

scheduler = SyncScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown"""
    logger.info("Starting channel sync host")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Channels configured: {len(settings.enabled_channels())}")

    if settings.SCHEDULER_ENABLED:
        scheduler.start()

    yield

    logger.info("Shutting down channel sync host")
    if settings.SCHEDULER_ENABLED:
        scheduler.stop()


# Create FastAPI app
app = FastAPI(
    title="Channel Snapshot Sync",
    description="Synchronizes YouTube channel video statistics into daily snapshots",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(sync.router)
