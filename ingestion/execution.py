"""
In-memory execution state for jobs and steps
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.base import BatchStatus


@dataclass
class StepExecution:
    """Outcome and counters of one step run"""

    step_name: str
    status: BatchStatus = BatchStatus.NOT_STARTED
    read_count: int = 0
    filter_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    failure: Optional[Exception] = None
    execution_context: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def exit_description(self) -> str:
        return str(self.failure) if self.failure else ""


@dataclass
class JobInstance:
    """A job name plus the key derived from its identifying parameters"""

    id: int
    job_name: str
    job_key: str


@dataclass
class JobExecution:
    """One attempt at running a job instance"""

    id: int
    job_instance: JobInstance
    parameters: Dict[str, Any]
    status: BatchStatus = BatchStatus.STARTED
    create_time: datetime = field(default_factory=datetime.utcnow)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    step_executions: List[StepExecution] = field(default_factory=list)
    exit_description: str = ""

    @property
    def job_name(self) -> str:
        return self.job_instance.job_name

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def failure_exceptions(self) -> List[Exception]:
        return [s.failure for s in self.step_executions if s.failure is not None]
