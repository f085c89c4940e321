"""
Persist user records with upsert logic (idempotent by id)
"""

from sqlalchemy.dialects import postgresql, sqlite
from models.user import User
from schemas.user import UserRecord
from ingestion.writers.transaction import SessionTransactionManager
import logging

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserRepository:
    """
    Save user records into tbl_users.

    Ensures:
    - No duplicate rows on repeated imports (INSERT ... ON CONFLICT (id) DO UPDATE)
    - Writes join the transaction opened by the transaction manager
    """

    def __init__(self, transaction_manager: SessionTransactionManager):
        self.transaction_manager = transaction_manager

    async def save(self, record: UserRecord) -> None:
        session = self.transaction_manager.current_session
        values = record.model_dump()

        insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
        if insert is None:
            # Generic fallback: ORM merge selects by primary key, then inserts or updates
            await session.merge(User(**values))
            await session.flush()
            return

        stmt = insert(User).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                column: getattr(stmt.excluded, column)
                for column in values
                if column != "id"
            }
        )
        await session.execute(stmt)
        logger.debug(f"Saved user id={record.id}")
