"""
Indeks analytics sync
Main FastAPI Application
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging
from urllib.parse import urlparse

from indeks.core.config import settings
from indeks.api.cron import router as cron_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Indeks sync API...")
    db_host = urlparse(getattr(settings, "DATABASE_URL", "")).hostname
    event_store_host = urlparse(getattr(settings, "EVENT_STORE_URL", "") or "").hostname or db_host
    logger.info(
        "Config: db_host=%s event_store_host=%s env=%s cron_secret=%s",
        db_host,
        event_store_host,
        settings.ENVIRONMENT,
        bool(getattr(settings, "CRON_SECRET", "")),
    )
    yield
    logger.info("Shutting down Indeks sync API...")


app = FastAPI(
    title="Indeks Sync API",
    description="Daily rollup pipeline for Indeks web analytics",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(cron_router, prefix="/api/cron", tags=["cron"])


@app.get("/health")
def health():
    return {"status": "ok", "service": "indeks-sync", "environment": settings.ENVIRONMENT}
