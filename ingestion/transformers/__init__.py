from ingestion.transformers.uppercase import (
    Transformer,
    compose,
    strip_whitespace,
    uppercase_fields,
    uppercase_names,
)

__all__ = ["Transformer", "compose", "strip_whitespace", "uppercase_fields", "uppercase_names"]
