"""
Map field sets onto pydantic record models
"""

from typing import Any, Dict, Generic, Set, Type, TypeVar
from pydantic import BaseModel, ValidationError
import logging

from core.exceptions import MappingError
from ingestion.readers.tokenizer import FieldSet

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


class FieldSetMapper(Generic[R]):
    """
    Build one record per field set by matching column names to attributes.

    A column matches an attribute by its alias (e.g. ``firstName``) or its
    attribute name (``first_name``). Columns with no matching attribute are
    ignored unless strict=True. Values are coerced by the record model, so
    "42" becomes 42 for an integer attribute; anything the model rejects
    becomes a MappingError.
    """

    def __init__(self, target_type: Type[R], strict: bool = False):
        self.target_type = target_type
        self.strict = strict
        self._known_names = self._collect_names(target_type)

    @staticmethod
    def _collect_names(target_type: Type[BaseModel]) -> Set[str]:
        names = set()
        for name, field in target_type.model_fields.items():
            names.add(name)
            if field.alias:
                names.add(field.alias)
        return names

    def map(self, field_set: FieldSet) -> R:
        data: Dict[str, Any] = {}
        unknown = []

        for name, value in zip(field_set.names, field_set.values):
            if name in self._known_names:
                data[name] = value
            else:
                unknown.append(name)

        if unknown and self.strict:
            raise MappingError(
                "Column names do not match record attributes",
                context={
                    "line_number": field_set.line_number,
                    "unknown_names": unknown,
                    "target_type": self.target_type.__name__
                }
            )

        try:
            return self.target_type.model_validate(data)
        except ValidationError as e:
            field_errors = {
                ".".join(str(loc) for loc in error["loc"]): error["msg"]
                for error in e.errors()
            }
            raise MappingError(
                f"Cannot map line to {self.target_type.__name__}",
                context={
                    "line_number": field_set.line_number,
                    "field_errors": field_errors
                },
                original_exception=e
            )
