"""
Pytest configuration and fixtures
"""

import os
import tempfile

# Point the application at SQLite before anything imports core.config
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'batch_import_test.db')}"
)
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("IMPORT_SCHEDULE_MINUTES", "0")

import asyncio
from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.database import build_engine, build_session_maker, create_tables
from ingestion.chunk import ChunkExecutor
from ingestion.mappers.field_set_mapper import FieldSetMapper
from ingestion.readers.flat_file import FlatFileRecordSource
from ingestion.readers.tokenizer import DelimitedLineTokenizer
from ingestion.jobs import USER_FIELD_NAMES
from ingestion.step import StepRunner
from ingestion.transformers.uppercase import uppercase_names
from schemas.user import UserRecord

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CSV_HEADER = ",".join(USER_FIELD_NAMES)


# ============================================================================
# Database
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with tbl_users created"""
    engine = build_engine(TEST_DATABASE_URL)
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(test_engine) -> async_sessionmaker:
    return build_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for assertions"""
    async with session_maker() as session:
        yield session


# ============================================================================
# Input files
# ============================================================================

@pytest.fixture
def write_csv(tmp_path):
    """Write a users file (header included) and return its path"""

    def _write(rows: List[str], name: str = "users.csv", header: bool = True):
        lines = ([CSV_HEADER] if header else []) + list(rows)
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def user_rows():
    """Three well-formed user lines"""
    return [
        "1,u1,john,doe,M,j@x.com,123,1990-01-01,eng",
        "2,u2,jane,roe,F,jr@x.com,456,1991-02-02,ops",
        "3,u3,ann,lee,F,a@x.com,789,1992-03-03,qa",
    ]


# ============================================================================
# In-memory collaborators
# ============================================================================

class InMemoryUserStore:
    """Committed rows keyed by id, plus a log of what each commit contained"""

    def __init__(self):
        self.rows: Dict[int, UserRecord] = {}
        self.commits: List[List[int]] = []
        self.rollbacks = 0


class InMemoryTransactionManager:
    """Stages saves and applies them to the store on commit"""

    def __init__(self, store: InMemoryUserStore, fail_on_commit: bool = False):
        self.store = store
        self.fail_on_commit = fail_on_commit
        self.staged: List[UserRecord] = []
        self.active = False
        self.events: List[str] = []

    async def begin(self) -> None:
        assert not self.active, "nested transaction"
        self.active = True
        self.staged = []
        self.events.append("begin")

    async def commit(self) -> None:
        assert self.active, "commit without begin"
        if self.fail_on_commit:
            raise RuntimeError("commit refused")
        for record in self.staged:
            self.store.rows[record.id] = record
        self.store.commits.append([r.id for r in self.staged])
        self.staged = []
        self.active = False
        self.events.append("commit")

    async def rollback(self) -> None:
        self.staged = []
        self.active = False
        self.store.rollbacks += 1
        self.events.append("rollback")


class InMemoryUserSink:
    """Saves into the staging area of the active transaction"""

    def __init__(self, transaction_manager: InMemoryTransactionManager, fail_on_ids=()):
        self.transaction_manager = transaction_manager
        self.fail_on_ids = set(fail_on_ids)
        self.saved: List[int] = []

    async def save(self, record: UserRecord) -> None:
        assert self.transaction_manager.active, "save outside a transaction"
        # Yield to the loop so concurrent runs interleave
        await asyncio.sleep(0)
        if record.id in self.fail_on_ids:
            raise RuntimeError(f"constraint violated for id {record.id}")
        self.transaction_manager.staged.append(record)
        self.saved.append(record.id)


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def make_step(user_store):
    """Build a StepRunner over a CSV path with in-memory persistence"""

    def _make(path, chunk_size=10, transformer=uppercase_names, fail_on_ids=(),
              fail_on_commit=False, strict=False, name="csv-import-step"):
        transaction_manager = InMemoryTransactionManager(user_store, fail_on_commit=fail_on_commit)
        sink = InMemoryUserSink(transaction_manager, fail_on_ids=fail_on_ids)
        executor = ChunkExecutor(
            source=FlatFileRecordSource(
                path, DelimitedLineTokenizer(USER_FIELD_NAMES, strict=strict)
            ),
            mapper=FieldSetMapper(UserRecord),
            transformer=transformer,
            sink=sink,
            transaction_manager=transaction_manager,
            chunk_size=chunk_size,
        )
        return StepRunner(name, executor)

    return _make
