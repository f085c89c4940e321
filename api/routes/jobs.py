"""
Job trigger and execution history endpoints
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from api.dependencies import get_import_job_runner, get_job_repository
from core.config import settings
from ingestion.job import JobRepository, JobRunner
from schemas.api import JobExecutionsResponse, JobExecutionSummary
import time
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("/importData", response_class=PlainTextResponse)
async def import_data(
    request: Request,
    runner: JobRunner = Depends(get_import_job_runner)
) -> str:
    """
    Run the user import job once.

    A fresh startAt (epoch milliseconds) makes every call a new job
    instance. The response body is the terminal status: COMPLETED,
    FAILED: <cause>, or the admission error message. Job failures are
    reported in the body, never as an HTTP error.
    """
    request_id = getattr(request.state, "request_id", "-")
    start_at = int(time.time() * 1000)

    logger.info(f"[{request_id}] POST /jobs/importData startAt={start_at}")
    outcome = await runner.trigger(start_at)
    logger.info(f"[{request_id}] importData -> {outcome.status.value}")

    return outcome.as_text()


@router.get("/executions", response_model=JobExecutionsResponse)
async def list_executions(
    limit: int = Query(10, ge=1, le=100, description="Number of recent executions to return"),
    repository: JobRepository = Depends(get_job_repository)
):
    """Recent executions of the import job held in this process"""
    executions = repository.find_executions(settings.IMPORT_JOB_NAME, limit=limit)
    running = repository.running_executions(settings.IMPORT_JOB_NAME)

    return JobExecutionsResponse(
        executions=[JobExecutionSummary.model_validate(e) for e in executions],
        total=len(repository.find_executions(settings.IMPORT_JOB_NAME, limit=None)),
        running=len(running)
    )
