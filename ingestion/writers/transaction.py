"""
Transaction scope used by the chunk executor
"""

from typing import Any, Optional, Protocol
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import logging

logger = logging.getLogger(__name__)


class RecordSink(Protocol):
    """Persists one record inside the currently open transaction"""

    async def save(self, record: Any) -> None: ...


class TransactionManager(Protocol):
    """Begin/commit/rollback boundary around one chunk of writes"""

    async def begin(self) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SessionTransactionManager:
    """
    One AsyncSession per transaction.

    Sinks constructed with this manager write through ``current_session``,
    so everything saved between begin() and commit() lands in the same
    database transaction. The session is closed after commit or rollback.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker
        self._session: Optional[AsyncSession] = None

    @property
    def current_session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("No active transaction; call begin() first")
        return self._session

    @property
    def active(self) -> bool:
        return self._session is not None

    async def begin(self) -> None:
        if self._session is not None:
            raise RuntimeError("Transaction already active")
        self._session = self.session_maker()
        await self._session.begin()

    async def commit(self) -> None:
        session = self.current_session
        try:
            await session.commit()
        finally:
            await self._close()

    async def rollback(self) -> None:
        if self._session is None:
            return
        try:
            await self._session.rollback()
        finally:
            await self._close()

    async def _close(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.close()
