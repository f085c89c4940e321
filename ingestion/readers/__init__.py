from ingestion.readers.tokenizer import DelimitedLineTokenizer, FieldSet
from ingestion.readers.flat_file import FlatFileRecordSource, RecordSource

__all__ = ["DelimitedLineTokenizer", "FieldSet", "FlatFileRecordSource", "RecordSource"]
