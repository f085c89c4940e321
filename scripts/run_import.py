"""
Script to run the user import job once from the command line
"""

import asyncio
import sys
import os
import logging
from typing import Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import build_engine, build_session_maker, create_tables
from core.logging import setup_logging
from ingestion.job import JobParameters, JobRepository
from ingestion.jobs import build_import_job_runner
from models.base import BatchStatus

setup_logging()
logger = logging.getLogger(__name__)


async def run_import(file_path: Optional[str] = None) -> int:
    """Run the import job; returns a process exit code"""

    engine = build_engine(settings.DATABASE_URL)
    session_maker = build_session_maker(engine)

    try:
        if settings.AUTO_CREATE_TABLES:
            await create_tables(engine)

        runner = build_import_job_runner(
            session_maker,
            JobRepository(),
            settings,
            file_path=file_path
        )
        outcome = await runner.launch(JobParameters.unique())
        logger.info(f"Import finished: {outcome.as_text()}")
        return 0 if outcome.status == BatchStatus.COMPLETED else 1

    except Exception as e:
        logger.error(f"Import pipeline error: {str(e)}")
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(run_import(sys.argv[1] if len(sys.argv) > 1 else None)))
