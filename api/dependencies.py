"""
FastAPI dependencies: database session and the import job runner
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from core.database import async_session_maker
from ingestion.job import JobRepository, JobRunner
from ingestion.jobs import build_import_job_runner

# Shared by every request so concurrent triggers see each other's instances
job_repository = JobRepository()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


def get_job_repository() -> JobRepository:
    return job_repository


def get_import_job_runner() -> JobRunner:
    return build_import_job_runner(async_session_maker, job_repository, settings)
