from ingestion.mappers.field_set_mapper import FieldSetMapper

__all__ = ["FieldSetMapper"]
