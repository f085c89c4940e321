"""
Chunk-oriented execution: read, transform, buffer, commit.

The executor pulls field sets from the source one at a time, maps and
transforms each into a record, and buffers the survivors. Every time the
buffer reaches the chunk size (and once more for a non-empty remainder when
the source is exhausted) the buffered records are saved inside a single
transaction:

    begin -> save(r1) ... save(rN) -> commit

If a save or the commit fails, the transaction is rolled back and a
ChunkExecutionError propagates; chunks committed earlier stay committed.
Chunk boundaries depend only on how many records have been buffered, never
on their content.
"""

from typing import Generic, Iterator, List, Optional, TypeVar
from itertools import islice
import asyncio
import logging

from core.exceptions import ChunkExecutionError
from ingestion.mappers.field_set_mapper import FieldSetMapper
from ingestion.readers.flat_file import RecordSource
from ingestion.transformers.uppercase import Transformer
from ingestion.writers.transaction import RecordSink, TransactionManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

READ_COUNT_KEY = "read.count"


class Chunk(Generic[T]):
    """Bounded, ordered buffer of records waiting to be committed together"""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Chunk capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self.items: List[T] = []

    def add(self, item: T) -> None:
        if self.is_full:
            raise OverflowError("Chunk is full")
        self.items.append(item)

    @property
    def is_full(self) -> bool:
        return len(self.items) >= self.capacity

    def clear(self) -> None:
        self.items = []

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)


class ChunkExecutor:
    """
    Drive the pull-transform-buffer-commit loop for one step.

    Collaborators are injected explicitly:
    - source: yields field sets (opened and closed per execution)
    - mapper: field set -> record
    - transformer: record -> record, or None to drop it
    - sink: ``await sink.save(record)`` inside the active transaction
    - transaction_manager: begin/commit/rollback around each chunk
    """

    def __init__(
        self,
        source: RecordSource,
        mapper: FieldSetMapper,
        transformer: Transformer,
        sink: RecordSink,
        transaction_manager: TransactionManager,
        chunk_size: int = 10
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")

        self.source = source
        self.mapper = mapper
        self.transformer = transformer
        self.sink = sink
        self.transaction_manager = transaction_manager
        self.chunk_size = chunk_size

    async def execute(self, step_execution, skip: int = 0) -> None:
        """
        Run the loop until the source is exhausted.

        Counters (read/filter/write/commit/rollback) are accumulated on
        ``step_execution``. ``skip`` discards that many leading field sets,
        which is how a failed step resumes after its last committed chunk.

        Raises:
            MappingError: A field set could not be turned into a record
            ChunkExecutionError: A chunk could not be persisted
        """
        chunk: Chunk = Chunk(self.chunk_size)
        items_read = skip

        with self.source.open() as field_sets:
            if skip:
                skipped = sum(1 for _ in islice(field_sets, skip))
                logger.info(f"Resuming after {skipped} previously committed records")

            for field_set in field_sets:
                record = self.mapper.map(field_set)
                items_read += 1
                step_execution.read_count += 1

                result = self.transformer(record)
                if result is None:
                    step_execution.filter_count += 1
                else:
                    chunk.add(result)

                if chunk.is_full:
                    await self._write_chunk(chunk, step_execution, items_read)

            if chunk:
                await self._write_chunk(chunk, step_execution, items_read)

    async def _write_chunk(self, chunk: Chunk, step_execution, items_read: int) -> None:
        chunk_number = step_execution.commit_count + step_execution.rollback_count + 1
        current_id: Optional[object] = None

        await self.transaction_manager.begin()
        try:
            for record in chunk:
                current_id = getattr(record, "id", None)
                try:
                    await self.sink.save(record)
                except Exception as e:
                    raise ChunkExecutionError(
                        "Failed to save record",
                        context={
                            "operation": "save",
                            "chunk": chunk_number,
                            "record_id": current_id
                        },
                        original_exception=e
                    )

            try:
                await self.transaction_manager.commit()
            except Exception as e:
                raise ChunkExecutionError(
                    "Failed to commit chunk",
                    context={
                        "operation": "commit",
                        "chunk": chunk_number,
                        "chunk_size": len(chunk)
                    },
                    original_exception=e
                )

        except ChunkExecutionError as e:
            logger.error(
                f"Rolling back chunk {chunk_number} ({len(chunk)} records): {e.message}",
                extra={"error_context": e.to_dict()}
            )
            await self.transaction_manager.rollback()
            step_execution.rollback_count += 1
            raise

        except asyncio.CancelledError:
            logger.warning(f"Chunk {chunk_number} interrupted, rolling back")
            await self.transaction_manager.rollback()
            step_execution.rollback_count += 1
            raise

        step_execution.write_count += len(chunk)
        step_execution.commit_count += 1
        step_execution.execution_context[READ_COUNT_KEY] = items_read
        logger.debug(f"Committed chunk {chunk_number} ({len(chunk)} records)")
        chunk.clear()
