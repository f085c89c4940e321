"""
Custom exceptions for the batch import engine with structured error context.

Every error raised by the engine carries a human-readable message, a context
dictionary (chunk number, record id, job name, ...) and the original
exception it wraps, so that failures can be logged and reported as text
without losing the cause.

Exception Hierarchy:
    BatchException (base)
    ├── SourceUnavailableError
    ├── MappingError
    │   └── IncorrectTokenCountError
    ├── ChunkExecutionError
    └── JobAdmissionError
        ├── AlreadyRunningError
        ├── AlreadyCompleteError
        ├── InvalidParametersError
        └── JobRestartError
"""

from typing import Optional, Dict, Any
from datetime import datetime


class BatchException(Exception):
    """
    Base exception for all batch-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (chunk, record, job, ...)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Read Errors
# ============================================================================

class SourceUnavailableError(BatchException):
    """
    Raised when the record source cannot be opened.

    Context should include:
        - file_path: Path of the resource
    """
    pass


class MappingError(BatchException):
    """
    Raised when one raw field set cannot be turned into a record.

    Treated as fatal to the step: there is no skip policy.

    Context should include:
        - line_number: Line of the source the field set came from
        - field_errors: Field-level problems reported by the record schema
    """
    pass


class IncorrectTokenCountError(MappingError):
    """
    Raised by a strict tokenizer when a line has more or fewer values
    than declared column names.

    Context should include:
        - line_number, expected, actual
    """
    pass


# ============================================================================
# Write Errors
# ============================================================================

class ChunkExecutionError(BatchException):
    """
    Raised when a chunk cannot be persisted.

    The chunk's transaction has been rolled back by the time this reaches
    the step; previously committed chunks stay committed.

    Context should include:
        - operation: "save" or "commit"
        - chunk: 1-based chunk number within the step
        - record_id: Identifier of the record being saved (for "save")
    """
    pass


# ============================================================================
# Job Admission Errors
# ============================================================================

class JobAdmissionError(BatchException):
    """Base exception for launches rejected before any step executes."""
    pass


class AlreadyRunningError(JobAdmissionError):
    """An execution of the same job instance is in flight."""
    pass


class AlreadyCompleteError(JobAdmissionError):
    """The job instance identified by these parameters already completed."""
    pass


class InvalidParametersError(JobAdmissionError):
    """
    The supplied job parameters are structurally invalid.

    Context should include:
        - missing_keys / unexpected_keys / parameter
    """
    pass


class JobRestartError(JobAdmissionError):
    """A failed instance of a non-restartable job was launched again."""
    pass
