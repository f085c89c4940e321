"""
Delimited record tokenization into field sets
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.exceptions import IncorrectTokenCountError


@dataclass(frozen=True)
class FieldSet:
    """Ordered raw values of one input record, paired with the declared names."""

    names: Tuple[str, ...]
    values: Tuple[str, ...]
    line_number: Optional[int] = None

    def __len__(self) -> int:
        return len(self.values)

    def read(self, name: str) -> str:
        """Value for a declared column name"""
        try:
            return self.values[self.names.index(name)]
        except ValueError:
            raise KeyError(f"Unknown column name: {name}") from None

    def as_dict(self) -> Dict[str, str]:
        return dict(zip(self.names, self.values))


class DelimitedLineTokenizer:
    """
    Pair the split values of one delimited record with column names.

    The record source splits records (quote-aware, quoted newlines
    included) and hands each row over as a sequence of cells, one slot
    wider than the declared names. Cells past the end of a short record
    are missing (not strings); a string in the extra slot means the record
    had more values than names.

    In lenient mode (strict=False) a short record is padded with empty
    strings and extra values are dropped; in strict mode any mismatch
    raises IncorrectTokenCountError.
    """

    def __init__(
        self,
        names: Sequence[str],
        delimiter: str = ",",
        quotechar: str = '"',
        strict: bool = False
    ):
        if not names:
            raise ValueError("At least one column name is required")
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")

        self.names = tuple(names)
        self.delimiter = delimiter
        self.quotechar = quotechar
        self.strict = strict

    @property
    def width(self) -> int:
        """Cells requested per row: the declared names plus an overflow slot"""
        return len(self.names) + 1

    @staticmethod
    def tokens(cells: Sequence[Any]) -> List[str]:
        """Values actually present in a row (trailing missing cells removed)"""
        tokens = list(cells)
        while tokens and not isinstance(tokens[-1], str):
            tokens.pop()
        return [token if isinstance(token, str) else "" for token in tokens]

    def tokenize(self, cells: Sequence[Any], line_number: Optional[int] = None) -> FieldSet:
        tokens = self.tokens(cells)
        expected = len(self.names)

        if len(tokens) != expected:
            if self.strict:
                # The overflow slot only says "more"; the exact excess is not kept
                actual = len(tokens) if len(tokens) < expected else f"more than {expected}"
                raise IncorrectTokenCountError(
                    f"Incorrect number of tokens: expected {expected}, found {actual}",
                    context={
                        "line_number": line_number,
                        "expected": expected,
                        "actual": actual
                    }
                )
            tokens = tokens[:expected] + [""] * (expected - len(tokens))

        return FieldSet(names=self.names, values=tuple(tokens), line_number=line_number)
