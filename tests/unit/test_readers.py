"""
Tests for the delimited line tokenizer and flat file record source
"""

import math

import pytest
from core.exceptions import IncorrectTokenCountError, SourceUnavailableError
from ingestion.jobs import USER_FIELD_NAMES
from ingestion.readers.flat_file import FlatFileRecordSource
from ingestion.readers.tokenizer import DelimitedLineTokenizer, FieldSet

MISSING = math.nan


@pytest.fixture
def tokenizer():
    return DelimitedLineTokenizer(USER_FIELD_NAMES)


def _read_all(source):
    with source.open() as field_sets:
        return list(field_sets)


def test_tokenize_pairs_values_with_names(tokenizer):
    cells = ["1", "u1", "john", "doe", "M", "j@x.com", "123", "1990-01-01", "eng", MISSING]

    field_set = tokenizer.tokenize(cells, line_number=2)

    assert len(field_set) == 9
    assert field_set.read("firstName") == "john"
    assert field_set.read("jobTitle") == "eng"
    assert field_set.line_number == 2
    assert field_set.as_dict()["id"] == "1"


def test_tokenize_lenient_pads_short_records(tokenizer):
    field_set = tokenizer.tokenize(["7", "u7", "ann"] + [MISSING] * 7)

    assert len(field_set) == 9
    assert field_set.read("firstName") == "ann"
    assert field_set.read("lastName") == ""
    assert field_set.read("jobTitle") == ""


def test_tokenize_keeps_explicit_empty_values(tokenizer):
    field_set = tokenizer.tokenize(["7", "", "ann", "", "", "", "", "", "", MISSING])

    assert field_set.read("userId") == ""
    assert field_set.read("firstName") == "ann"


def test_tokenize_lenient_drops_extra_values(tokenizer):
    cells = ["1", "u1", "john", "doe", "M", "j@x.com", "123", "1990-01-01", "eng", "extra"]

    field_set = tokenizer.tokenize(cells)

    assert len(field_set) == 9
    assert field_set.read("jobTitle") == "eng"


def test_tokenize_strict_rejects_short_record():
    strict = DelimitedLineTokenizer(USER_FIELD_NAMES, strict=True)

    with pytest.raises(IncorrectTokenCountError) as exc_info:
        strict.tokenize(["1", "u1", "john"] + [MISSING] * 7, line_number=5)

    assert exc_info.value.context["line_number"] == 5
    assert exc_info.value.context["expected"] == 9
    assert exc_info.value.context["actual"] == 3


def test_tokenize_strict_rejects_long_record():
    strict = DelimitedLineTokenizer(USER_FIELD_NAMES, strict=True)

    with pytest.raises(IncorrectTokenCountError) as exc_info:
        strict.tokenize(["1"] * 10)

    assert exc_info.value.context["actual"] == "more than 9"


def test_tokenizer_requires_names():
    with pytest.raises(ValueError):
        DelimitedLineTokenizer([])


def test_tokenizer_width_has_overflow_slot(tokenizer):
    assert tokenizer.width == 10


def test_field_set_read_unknown_name():
    field_set = FieldSet(names=("id",), values=("1",))

    with pytest.raises(KeyError):
        field_set.read("email")


# ============================================================================
# FlatFileRecordSource
# ============================================================================

def test_source_reads_records_in_order(write_csv, tokenizer, user_rows):
    result = _read_all(FlatFileRecordSource(write_csv(user_rows), tokenizer))

    assert [fs.read("id") for fs in result] == ["1", "2", "3"]
    assert result[0].read("firstName") == "john"
    assert [fs.line_number for fs in result] == [2, 3, 4]


def test_source_keeps_values_as_strings(write_csv, tokenizer):
    result = _read_all(FlatFileRecordSource(
        write_csv(["007,u1,john,doe,M,j@x.com,0123,1990-01-01,NA"]), tokenizer
    ))

    assert result[0].read("id") == "007"
    assert result[0].read("phone") == "0123"
    assert result[0].read("jobTitle") == "NA"


def test_source_skips_header_blank_and_comment_lines(write_csv, tokenizer):
    path = write_csv([
        "1,u1,john,doe,M,j@x.com,123,1990-01-01,eng",
        "",
        "# exported 2024-01-01",
        "2,u2,jane,roe,F,jr@x.com,456,1991-02-02,ops",
    ])

    result = _read_all(FlatFileRecordSource(path, tokenizer))

    assert [fs.read("id") for fs in result] == ["1", "2"]


def test_source_quoted_value_keeps_delimiter(write_csv, tokenizer):
    path = write_csv(['1,u1,john,doe,M,j@x.com,123,1990-01-01,"eng, senior"'])

    result = _read_all(FlatFileRecordSource(path, tokenizer))

    assert result[0].read("jobTitle") == "eng, senior"


def test_source_quoted_value_spanning_lines(write_csv, tokenizer):
    path = write_csv([
        '1,u1,john,doe,M,j@x.com,123,1990-01-01,"senior',
        'engineer"',
        "2,u2,jane,roe,F,jr@x.com,456,1991-02-02,ops",
    ])

    result = _read_all(FlatFileRecordSource(path, tokenizer))

    assert len(result) == 2
    assert result[0].read("jobTitle") == "senior\nengineer"
    assert result[1].read("firstName") == "jane"


def test_source_ragged_records_lenient(write_csv, tokenizer):
    path = write_csv([
        "1,u1,john,doe,M",
        "2,u2,jane,roe,F,jr@x.com,456,1991-02-02,ops,extra,more",
    ])

    result = _read_all(FlatFileRecordSource(path, tokenizer))

    assert result[0].read("lastName") == "doe"
    assert result[0].read("email") == ""
    assert result[1].read("jobTitle") == "ops"
    assert len(result[1]) == 9


def test_source_ragged_record_strict(write_csv):
    strict = DelimitedLineTokenizer(USER_FIELD_NAMES, strict=True)
    path = write_csv([
        "1,u1,john,doe,M,j@x.com,123,1990-01-01,eng",
        "2,u2,jane,roe,F,jr@x.com,456,1991-02-02,ops,extra,more",
    ])

    with FlatFileRecordSource(path, strict).open() as field_sets:
        assert next(field_sets).read("id") == "1"
        with pytest.raises(IncorrectTokenCountError):
            next(field_sets)


def test_source_custom_delimiter(write_csv):
    tokenizer = DelimitedLineTokenizer(["id", "firstName"], delimiter=";")
    path = write_csv(["4;zoe"], header=False)

    result = _read_all(FlatFileRecordSource(path, tokenizer, lines_to_skip=0))

    assert result[0].values == ("4", "zoe")


def test_source_small_read_size(write_csv, tokenizer, user_rows):
    result = _read_all(FlatFileRecordSource(write_csv(user_rows), tokenizer, read_size=1))

    assert [fs.read("id") for fs in result] == ["1", "2", "3"]


def test_source_header_only_yields_nothing(write_csv, tokenizer):
    assert _read_all(FlatFileRecordSource(write_csv([]), tokenizer)) == []


def test_source_without_header(write_csv, tokenizer):
    path = write_csv(["9,u9,al,bo,M,a@x.com,1,2000-01-01,dev"], header=False)

    result = _read_all(FlatFileRecordSource(path, tokenizer, lines_to_skip=0))

    assert [fs.read("id") for fs in result] == ["9"]


def test_source_missing_file(tmp_path, tokenizer):
    source = FlatFileRecordSource(tmp_path / "missing.csv", tokenizer)

    with pytest.raises(SourceUnavailableError) as exc_info:
        with source.open():
            pass

    assert "missing.csv" in exc_info.value.context["file_path"]


def test_source_releases_file_when_abandoned(write_csv, tokenizer, user_rows):
    source = FlatFileRecordSource(write_csv(user_rows), tokenizer)

    with pytest.raises(RuntimeError):
        with source.open() as field_sets:
            next(field_sets)
            raise RuntimeError("consumer stopped")

    # Re-opening starts from the first record again
    with source.open() as field_sets:
        assert next(field_sets).read("id") == "1"
