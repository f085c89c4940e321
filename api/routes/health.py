"""
Health check endpoint with database and import job status
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from api.dependencies import get_db, get_job_repository
from core.config import settings
from ingestion.job import JobRepository
from schemas.api import HealthCheckResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    repository: JobRepository = Depends(get_job_repository)
):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Status of the most recent import execution in this process
    """
    db_connected = False

    try:
        await db.execute(text("SELECT 1"))
        db_connected = True
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")

    recent = repository.find_executions(settings.IMPORT_JOB_NAME, limit=1)
    last = recent[0] if recent else None

    return HealthCheckResponse(
        database_connected=db_connected,
        job_name=settings.IMPORT_JOB_NAME,
        last_job_status=last.status if last else None,
        last_job_finished_at=last.end_time if last else None,
        running_executions=len(repository.running_executions(settings.IMPORT_JOB_NAME))
    )
