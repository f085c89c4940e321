"""
Flat file record source with header skipping and scoped file handling
"""

from contextlib import contextmanager
from pathlib import Path
from typing import ContextManager, Iterator, Protocol, Sequence, Union
import logging

import pandas as pd

from core.exceptions import SourceUnavailableError
from ingestion.readers.tokenizer import DelimitedLineTokenizer, FieldSet

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Scoped, ordered stream of field sets"""

    def open(self) -> ContextManager[Iterator[FieldSet]]: ...


class FlatFileRecordSource:
    """
    Read field sets lazily from a delimited text file with pandas.

    Supports:
    - Skipping leading header lines
    - Quoted values spanning several lines
    - Ignoring blank lines and comment lines
    - Lenient or strict token counts (delegated to the tokenizer)

    Rows are parsed ``read_size`` at a time and every value is kept as the
    raw string. The file is only held open inside the ``open()`` block, so
    it is released whether the stream is exhausted or abandoned early.

    Line numbers count the skipped header lines and every non-blank record
    as one line each.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        tokenizer: DelimitedLineTokenizer,
        lines_to_skip: int = 1,
        encoding: str = "utf-8",
        comment_prefixes: Sequence[str] = ("#",),
        read_size: int = 1000
    ):
        if lines_to_skip < 0:
            raise ValueError("lines_to_skip cannot be negative")
        if read_size < 1:
            raise ValueError("read_size must be at least 1")

        self.file_path = Path(file_path)
        self.tokenizer = tokenizer
        self.lines_to_skip = lines_to_skip
        self.encoding = encoding
        self.comment_prefixes = tuple(comment_prefixes)
        self.read_size = read_size

    @contextmanager
    def open(self) -> Iterator[Iterator[FieldSet]]:
        """
        Open the resource and yield an iterator of field sets.

        Raises:
            SourceUnavailableError: If the file does not exist or cannot be read
        """
        if not self.file_path.is_file():
            raise SourceUnavailableError(
                "Input resource does not exist",
                context={"file_path": str(self.file_path)}
            )

        try:
            # index_col=False: rows wider than the overflow slot are cut to
            # it instead of shifting values into an implicit index
            reader = pd.read_csv(
                self.file_path,
                header=None,
                names=list(range(self.tokenizer.width)),
                index_col=False,
                skiprows=self.lines_to_skip,
                dtype=str,
                keep_default_na=False,
                sep=self.tokenizer.delimiter,
                quotechar=self.tokenizer.quotechar,
                encoding=self.encoding,
                skip_blank_lines=True,
                chunksize=self.read_size,
                engine="python",
            )
        except pd.errors.EmptyDataError:
            reader = None
        except OSError as e:
            raise SourceUnavailableError(
                "Input resource cannot be opened",
                context={"file_path": str(self.file_path)},
                original_exception=e
            )

        if reader is None:
            logger.info(f"No records in {self.file_path}")
            yield iter(())
            return

        logger.info(f"Reading records from {self.file_path}")
        with reader:
            yield self._field_sets(reader)
        logger.debug(f"Closed {self.file_path}")

    def _field_sets(self, reader) -> Iterator[FieldSet]:
        line_number = self.lines_to_skip
        for frame in reader:
            for cells in frame.itertuples(index=False, name=None):
                line_number += 1
                tokens = self.tokenizer.tokens(cells)

                if not any(token.strip() for token in tokens):
                    continue
                if self.comment_prefixes and tokens[0].lstrip().startswith(self.comment_prefixes):
                    continue

                yield self.tokenizer.tokenize(cells, line_number=line_number)
