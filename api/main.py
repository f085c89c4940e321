"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, jobs
from api.dependencies import get_import_job_runner
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.database import create_tables
from core.logging import setup_logging
from ingestion.scheduler import ImportScheduler
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Batch Import Backend API",
    description="Chunk-oriented CSV import into the users table",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Periodic trigger; stays idle unless IMPORT_SCHEDULE_MINUTES > 0
scheduler = ImportScheduler(get_import_job_runner)


# Include routers
app.include_router(health.router)
app.include_router(jobs.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Batch Import Backend API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    if settings.AUTO_CREATE_TABLES:
        await create_tables()

    scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Batch Import Backend API")
    scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Batch Import Backend API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "import": "POST /jobs/importData",
            "executions": "/jobs/executions"
        }
    }
