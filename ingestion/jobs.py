"""
Wiring for the user import job: CSV file -> uppercase names -> tbl_users
"""

from pathlib import Path
from typing import Callable, Optional, Union
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.config import Settings, settings as default_settings
from ingestion.chunk import ChunkExecutor
from ingestion.job import Job, JobRepository, JobRunner
from ingestion.mappers.field_set_mapper import FieldSetMapper
from ingestion.readers.flat_file import FlatFileRecordSource
from ingestion.readers.tokenizer import DelimitedLineTokenizer
from ingestion.step import StepRunner
from ingestion.transformers.uppercase import Transformer, uppercase_names
from ingestion.writers.transaction import SessionTransactionManager
from ingestion.writers.user_repository import UserRepository
from schemas.user import UserRecord

USER_FIELD_NAMES = (
    "id", "userId", "firstName", "lastName", "gender",
    "email", "phone", "dateOfBirth", "jobTitle",
)


def build_import_step(
    session_maker: async_sessionmaker,
    config: Settings = default_settings,
    file_path: Optional[Union[str, Path]] = None,
    chunk_size: Optional[int] = None,
    transformer: Transformer = uppercase_names,
    sink_factory: Callable[[SessionTransactionManager], object] = UserRepository,
) -> StepRunner:
    """Assemble reader, mapper, transformer and sink into one step"""
    tokenizer = DelimitedLineTokenizer(
        names=USER_FIELD_NAMES,
        delimiter=config.IMPORT_DELIMITER,
        strict=config.IMPORT_STRICT,
    )
    source = FlatFileRecordSource(
        file_path or config.IMPORT_FILE_PATH,
        tokenizer,
        lines_to_skip=config.IMPORT_LINES_TO_SKIP,
        encoding=config.IMPORT_ENCODING,
    )
    transaction_manager = SessionTransactionManager(session_maker)

    executor = ChunkExecutor(
        source=source,
        mapper=FieldSetMapper(UserRecord),
        transformer=transformer,
        sink=sink_factory(transaction_manager),
        transaction_manager=transaction_manager,
        chunk_size=chunk_size or config.CHUNK_SIZE,
    )
    return StepRunner(config.IMPORT_STEP_NAME, executor)


def build_import_job(session_maker: async_sessionmaker, config: Settings = default_settings, **step_options) -> Job:
    """The importUsers job; a fresh step (and transaction manager) per run"""
    return Job(
        name=config.IMPORT_JOB_NAME,
        step_factory=lambda: build_import_step(session_maker, config, **step_options),
    )


def build_import_job_runner(
    session_maker: async_sessionmaker,
    repository: JobRepository,
    config: Settings = default_settings,
    **step_options
) -> JobRunner:
    return JobRunner(build_import_job(session_maker, config, **step_options), repository)
