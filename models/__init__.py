"""
SQLAlchemy ORM models and shared enums.

Models:
    base: Declarative base and the BatchStatus enum used by job/step executions
    user: Destination entity for the user import (table tbl_users)

Job and step executions are tracked in process memory (see ingestion.job);
only imported records are persisted.

Usage:
    from models.user import User
    from models.base import Base, BatchStatus

Example:
    async with session.begin():
        session.add(User(id=1, first_name="JOHN", last_name="DOE"))
"""

__all__ = [
    "Base",
    "BatchStatus",
    "User",
]
