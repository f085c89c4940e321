"""
Job execution model: identifying parameters, instance admission and the
job runner.

A job instance is identified by (job name, job key), where the key is a
hash of the identifying parameters. Admission is decided atomically by the
JobRepository before any step runs:

    running execution for the instance    -> AlreadyRunningError
    completed execution for the instance  -> AlreadyCompleteError
    failed instance, job not restartable  -> JobRestartError
    parameters rejected by the validator  -> InvalidParametersError

JobRunner never lets these escape; they come back as a rejected JobOutcome.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from itertools import count
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple
import hashlib
import logging
import threading
import time

from core.exceptions import (
    AlreadyCompleteError,
    AlreadyRunningError,
    InvalidParametersError,
    JobAdmissionError,
    JobRestartError,
)
from ingestion.execution import JobExecution, JobInstance, StepExecution
from ingestion.step import StepRunner
from models.base import BatchStatus

logger = logging.getLogger(__name__)

START_AT = "startAt"

_PARAMETER_TYPES = (str, int, float, date, datetime)


# ============================================================================
# Parameters
# ============================================================================

@dataclass(frozen=True)
class JobParameter:
    value: Any
    identifying: bool = True


class JobParameters:
    """Named launch parameters; identifying ones define the job instance"""

    def __init__(self, parameters: Optional[Mapping[str, Any]] = None):
        self._parameters: Dict[str, JobParameter] = {}
        for name, value in (parameters or {}).items():
            if not isinstance(value, JobParameter):
                value = JobParameter(value)
            self._parameters[name] = value

    @classmethod
    def unique(cls, start_at: Optional[int] = None) -> "JobParameters":
        """Parameters carrying a fresh startAt (epoch milliseconds)"""
        if start_at is None:
            start_at = int(time.time() * 1000)
        return cls({START_AT: start_at})

    def __contains__(self, name: str) -> bool:
        return name in self._parameters

    def __iter__(self):
        return iter(self._parameters)

    def __len__(self) -> int:
        return len(self._parameters)

    def get(self, name: str, default: Any = None) -> Any:
        parameter = self._parameters.get(name)
        return parameter.value if parameter is not None else default

    def items(self) -> Iterable[Tuple[str, JobParameter]]:
        return self._parameters.items()

    def to_dict(self) -> Dict[str, Any]:
        return {name: parameter.value for name, parameter in self._parameters.items()}

    def job_key(self) -> str:
        """MD5 of the sorted identifying parameters"""
        identifying = sorted(
            (name, parameter.value)
            for name, parameter in self._parameters.items()
            if parameter.identifying
        )
        key_source = "".join(f"{name}={value};" for name, value in identifying)
        return hashlib.md5(key_source.encode("utf-8")).hexdigest()

    def __repr__(self) -> str:
        return f"JobParameters({self.to_dict()!r})"


class JobParametersValidator:
    """
    Structural checks on launch parameters.

    - every required key must be present
    - when optional keys are declared, no other keys are allowed
    - values must be str, int, float, date or datetime
    - startAt, when present, must be a positive integer
    """

    def __init__(self, required_keys: Iterable[str] = (), optional_keys: Iterable[str] = ()):
        self.required_keys = set(required_keys)
        self.optional_keys = set(optional_keys)

        overlap = self.required_keys & self.optional_keys
        if overlap:
            raise ValueError(f"Keys cannot be both required and optional: {sorted(overlap)}")

    def validate(self, parameters: Optional[JobParameters]) -> None:
        if parameters is None:
            raise InvalidParametersError("Job parameters are required")

        missing = sorted(k for k in self.required_keys if k not in parameters)
        if missing:
            raise InvalidParametersError(
                f"Missing required job parameters: {missing}",
                context={"missing_keys": missing}
            )

        if self.optional_keys:
            allowed = self.required_keys | self.optional_keys
            unexpected = sorted(k for k in parameters if k not in allowed)
            if unexpected:
                raise InvalidParametersError(
                    f"Unexpected job parameters: {unexpected}",
                    context={"unexpected_keys": unexpected}
                )

        for name, parameter in parameters.items():
            value = parameter.value
            if isinstance(value, bool) or not isinstance(value, _PARAMETER_TYPES):
                raise InvalidParametersError(
                    f"Unsupported value type for job parameter '{name}': {type(value).__name__}",
                    context={"parameter": name}
                )

        if START_AT in parameters:
            start_at = parameters.get(START_AT)
            if not isinstance(start_at, int) or start_at <= 0:
                raise InvalidParametersError(
                    f"'{START_AT}' must be a positive integer timestamp",
                    context={"parameter": START_AT, "value": start_at}
                )


# ============================================================================
# Repository
# ============================================================================

class JobRepository:
    """
    Process-local registry of job instances and their executions.

    ``create_job_execution`` checks and registers under one lock, so two
    launches with the same identifying parameters can never both be admitted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._instance_ids = count(1)
        self._execution_ids = count(1)
        self._instances: Dict[Tuple[str, str], JobInstance] = {}
        self._executions: Dict[int, List[JobExecution]] = {}

    def create_job_execution(
        self,
        job_name: str,
        parameters: JobParameters,
        restartable: bool = True
    ) -> JobExecution:
        """
        Admit a launch and register its execution as STARTED.

        Raises:
            AlreadyRunningError, AlreadyCompleteError, JobRestartError
        """
        job_key = parameters.job_key()
        context = {"job_name": job_name, "parameters": parameters.to_dict()}

        with self._lock:
            instance = self._instances.get((job_name, job_key))

            if instance is None:
                instance = JobInstance(id=next(self._instance_ids), job_name=job_name, job_key=job_key)
                self._instances[(job_name, job_key)] = instance
                self._executions[instance.id] = []
            else:
                executions = self._executions[instance.id]
                for execution in executions:
                    if execution.status.is_running:
                        raise AlreadyRunningError(
                            f"A job execution for this job is already running: {job_name}",
                            context={**context, "execution_id": execution.id}
                        )
                    if execution.status == BatchStatus.COMPLETED:
                        raise AlreadyCompleteError(
                            "A job instance already exists and is complete for "
                            f"parameters={parameters.to_dict()}. If you want to run this job "
                            "again, change the parameters.",
                            context={**context, "execution_id": execution.id}
                        )
                if executions and not restartable:
                    raise JobRestartError(
                        f"JobInstance already exists and is not restartable: {job_name}",
                        context=context
                    )

            execution = JobExecution(
                id=next(self._execution_ids),
                job_instance=instance,
                parameters=parameters.to_dict(),
                status=BatchStatus.STARTED,
            )
            self._executions[instance.id].append(execution)
            return execution

    def ensure_registered(self, execution: JobExecution) -> None:
        """Executions are held by reference; this only rejects unknown ones"""
        with self._lock:
            executions = self._executions.get(execution.job_instance.id, [])
            if not any(e is execution for e in executions):
                raise KeyError(f"Unknown job execution: {execution.id}")

    def get_last_step_execution(self, instance: JobInstance, step_name: str) -> Optional[StepExecution]:
        """Most recent execution of a step within earlier runs of an instance"""
        with self._lock:
            executions = list(self._executions.get(instance.id, []))

        for execution in reversed(executions):
            for step_execution in reversed(execution.step_executions):
                if step_execution.step_name == step_name:
                    return step_execution
        return None

    def find_executions(self, job_name: Optional[str] = None, limit: Optional[int] = 20) -> List[JobExecution]:
        """Most recent executions first; limit=None returns all of them"""
        with self._lock:
            executions = [
                execution
                for (name, _), instance in self._instances.items()
                if job_name is None or name == job_name
                for execution in self._executions[instance.id]
            ]
        executions.sort(key=lambda e: e.id, reverse=True)
        return executions if limit is None else executions[:limit]

    def running_executions(self, job_name: Optional[str] = None) -> List[JobExecution]:
        return [
            e for e in self.find_executions(job_name, limit=None) if e.status.is_running
        ]


# ============================================================================
# Job + runner
# ============================================================================

@dataclass
class Job:
    """A named job made of exactly one step, built fresh for every run"""

    name: str
    step_factory: Callable[[], StepRunner]
    validator: JobParametersValidator = field(
        default_factory=lambda: JobParametersValidator(required_keys=[START_AT])
    )
    restartable: bool = True


@dataclass
class JobOutcome:
    """
    What a launch produced.

    Rejected launches (admission errors) keep status NOT_STARTED and carry
    the error; admitted launches end COMPLETED or FAILED.
    """

    status: BatchStatus
    execution: Optional[JobExecution] = None
    error: Optional[JobAdmissionError] = None

    @property
    def rejected(self) -> bool:
        return self.error is not None

    def as_text(self) -> str:
        if self.error is not None:
            return f"Job failed with exception: {type(self.error).__name__}: {self.error.message}"
        if self.status == BatchStatus.FAILED and self.execution and self.execution.exit_description:
            return f"{self.status.value}: {self.execution.exit_description}"
        return self.status.value

    def __str__(self) -> str:
        return self.as_text()


class JobRunner:
    """
    Launch a job with given parameters and report its terminal status.

    State machine per execution: NOT_STARTED -> STARTED -> COMPLETED | FAILED.
    """

    def __init__(self, job: Job, repository: JobRepository):
        self.job = job
        self.repository = repository

    async def trigger(self, start_at: Any) -> JobOutcome:
        """Launch with ``startAt`` as the single identifying parameter"""
        return await self.launch(JobParameters({START_AT: start_at}))

    async def launch(self, parameters: JobParameters) -> JobOutcome:
        try:
            self.job.validator.validate(parameters)
            execution = self.repository.create_job_execution(
                self.job.name, parameters, restartable=self.job.restartable
            )
        except JobAdmissionError as e:
            logger.warning(
                f"Job [{self.job.name}] rejected: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            return JobOutcome(status=BatchStatus.NOT_STARTED, error=e)

        execution.start_time = datetime.utcnow()
        logger.info(
            f"Job: [{self.job.name}] launched with the following parameters: "
            f"[{parameters.to_dict()}] (execution {execution.id})"
        )

        try:
            step = self.job.step_factory()
            previous = self.repository.get_last_step_execution(execution.job_instance, step.name)
            step_execution = await step.execute(previous)
            execution.step_executions.append(step_execution)

            if step_execution.status == BatchStatus.COMPLETED:
                execution.status = BatchStatus.COMPLETED
            else:
                execution.status = BatchStatus.FAILED
                execution.exit_description = step_execution.exit_description

        except Exception as e:
            logger.exception(f"Unexpected error in job [{self.job.name}]")
            execution.status = BatchStatus.FAILED
            execution.exit_description = f"{type(e).__name__}: {e}"

        finally:
            if execution.status.is_running:
                # Cancelled mid-step
                execution.status = BatchStatus.FAILED
                execution.exit_description = "Job execution was interrupted"
            execution.end_time = datetime.utcnow()
            self.repository.ensure_registered(execution)

        logger.info(
            f"Job: [{self.job.name}] completed with the following parameters: "
            f"[{parameters.to_dict()}] and the following status: [{execution.status.value}] "
            f"in {execution.duration_seconds:.3f}s"
        )
        return JobOutcome(status=execution.status, execution=execution)
