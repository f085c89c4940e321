"""
Record transformers: plain callables from record to record (or None to drop)
"""

from typing import Callable, Optional, TypeVar
from pydantic import BaseModel

R = TypeVar("R", bound=BaseModel)

# Returning None excludes the record from the chunk without failing the step
Transformer = Callable[[R], Optional[R]]


def uppercase_fields(*fields: str) -> Transformer:
    """
    Build a transformer that upper-cases the given string attributes.

    Unset or empty attributes are left as they are. The input record is
    never mutated; a copy with the updated values is returned.
    """
    if not fields:
        raise ValueError("At least one field name is required")

    def transform(record: R) -> R:
        updates = {}
        for field in fields:
            value = getattr(record, field)
            if value:
                updates[field] = value.upper()
        return record.model_copy(update=updates) if updates else record.model_copy()

    transform.__name__ = f"uppercase_{'_'.join(fields)}"
    return transform


uppercase_names = uppercase_fields("first_name", "last_name")


def strip_whitespace(record: R) -> R:
    """Trim surrounding whitespace from every string attribute"""
    updates = {
        name: value.strip()
        for name, value in dict(record).items()
        if isinstance(value, str) and value != value.strip()
    }
    return record.model_copy(update=updates)


def compose(*transformers: Transformer) -> Transformer:
    """Chain transformers left to right; stops as soon as one drops the record"""

    def transform(record: R) -> Optional[R]:
        for transformer in transformers:
            record = transformer(record)
            if record is None:
                return None
        return record

    return transform
