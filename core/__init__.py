"""
Core utilities and configuration for the batch import backend.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Database engine, session factory and table creation
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import ChunkExecutionError, MappingError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get database session
    async with async_session_maker() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    # Exceptions
    "BatchException",
    "SourceUnavailableError",
    "MappingError",
    "IncorrectTokenCountError",
    "ChunkExecutionError",
    "JobAdmissionError",
    "AlreadyRunningError",
    "AlreadyCompleteError",
    "InvalidParametersError",
    "JobRestartError",
]
