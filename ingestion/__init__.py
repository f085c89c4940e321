"""
Chunk-oriented batch import engine.

This package contains the components of the read-transform-write pipeline
and the job/step execution model around it:

Modules:
    chunk: ChunkExecutor (pull, transform, buffer, commit per chunk)
    step: StepRunner (one named executor run with a terminal status)
    job: JobParameters, JobRepository, JobRunner (instance admission and status)
    execution: JobExecution / StepExecution state
    jobs: wiring of the importUsers job
    scheduler: APScheduler integration for periodic imports

Subpackages:
    readers: delimited line tokenizer and flat file record source
    mappers: field set -> pydantic record mapping
    transformers: record -> record callables (uppercase, compose, ...)
    writers: transaction manager and upsert repository

Architecture:
    FlatFileRecordSource -> FieldSetMapper -> transformer -> Chunk
        -> (chunk full) begin / sink.save(...) / commit -> repeat
        -> StepRunner finalizes -> JobRunner finalizes -> status text

Usage:
    from ingestion.job import JobRepository
    from ingestion.jobs import build_import_job_runner

Example:
    runner = build_import_job_runner(async_session_maker, JobRepository())
    outcome = await runner.trigger(int(time.time() * 1000))

    print(outcome.as_text())  # "COMPLETED"

Error Handling:
    Mapping and chunk errors fail the step (FAILED with the cause kept);
    admission errors are returned as rejected outcomes. Nothing is retried
    automatically.
"""

__all__ = [
    "Chunk",
    "ChunkExecutor",
    "StepRunner",
    "Job",
    "JobParameters",
    "JobRepository",
    "JobRunner",
    "JobOutcome",
    "ImportScheduler",
]
