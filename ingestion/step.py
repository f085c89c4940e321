"""
Step runner: one named chunk-oriented execution with a terminal status
"""

from datetime import datetime
from typing import Optional
import logging

from core.exceptions import BatchException
from ingestion.chunk import ChunkExecutor, READ_COUNT_KEY
from ingestion.execution import StepExecution
from models.base import BatchStatus

logger = logging.getLogger(__name__)


class StepRunner:
    """
    Wrap one ChunkExecutor run as a named unit of work.

    The outcome is always returned, never raised: COMPLETED, or FAILED
    with the causing exception kept on ``StepExecution.failure``. Nothing
    is retried here.
    """

    def __init__(self, name: str, executor: ChunkExecutor):
        self.name = name
        self.executor = executor

    async def execute(self, previous: Optional[StepExecution] = None) -> StepExecution:
        """
        Run the step.

        Args:
            previous: Earlier execution of this step for the same job
                instance. If it FAILED, the run resumes after the records
                its committed chunks already covered.

        Returns:
            StepExecution with status, counters and timing
        """
        step_execution = StepExecution(step_name=self.name)
        skip = 0
        if previous is not None and previous.status == BatchStatus.FAILED:
            skip = previous.execution_context.get(READ_COUNT_KEY, 0)
            step_execution.execution_context[READ_COUNT_KEY] = skip

        step_execution.status = BatchStatus.STARTED
        step_execution.start_time = datetime.utcnow()
        logger.info(f"Executing step: [{self.name}]")

        try:
            await self.executor.execute(step_execution, skip=skip)
            step_execution.status = BatchStatus.COMPLETED

        except BatchException as e:
            logger.error(
                f"Step [{self.name}] failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            step_execution.status = BatchStatus.FAILED
            step_execution.failure = e

        except Exception as e:
            logger.exception(f"Unexpected error in step [{self.name}]")
            step_execution.status = BatchStatus.FAILED
            step_execution.failure = e

        finally:
            step_execution.end_time = datetime.utcnow()

        logger.info(
            f"Step: [{self.name}] {step_execution.status.value} in "
            f"{step_execution.duration_seconds:.3f}s - "
            f"Read: {step_execution.read_count}, Filtered: {step_execution.filter_count}, "
            f"Written: {step_execution.write_count}, Commits: {step_execution.commit_count}, "
            f"Rollbacks: {step_execution.rollback_count}"
        )
        return step_execution
