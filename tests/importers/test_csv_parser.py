import pytest

from import_engine import ConfigurationError, CsvOptions, ParseError
from import_engine.csv_parser import decode, iter_rows, normalize_header, scan


AUTHORS = "Name,Last name,Birthday\nJohn,Doe,1986-05-01\nJane,Roe,1988-11-16\n"


# ── decode ─────────────────────────────────────────────────────────────

def test_decode_strips_utf8_bom():
    assert decode(b"\xef\xbb\xbfName\nJohn\n") == "Name\nJohn\n"


def test_decode_strips_bom_from_text():
    assert decode("\ufeffName\n") == "Name\n"


def test_decode_uses_declared_encoding():
    raw = "Name,Last name\nИван,Петров\n".encode("windows-1251")
    assert decode(raw, "windows-1251") == "Name,Last name\nИван,Петров\n"


def test_decode_invalid_bytes_is_parse_error():
    with pytest.raises(ParseError):
        decode(b"Name\n\xff\xfe\n", "utf-8")


def test_decode_unknown_encoding_is_configuration_error():
    with pytest.raises(ConfigurationError):
        decode(b"Name\n", "no-such-encoding")


# ── headers ────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("Name", "name"),
    ("Last name", "last_name"),
    ("LastName", "last_name"),
    ("E-Mail", "email"),
    ("  Birthday  ", "birthday"),
    ("Birthday (YYYY)", "birthday_yyyy"),
    ("HTTPCode", "http_code"),
    ("author_id", "author_id"),
])
def test_normalize_header(raw, expected):
    assert normalize_header(raw) == expected


def test_rows_keyed_by_normalized_headers():
    rows = list(iter_rows(AUTHORS, CsvOptions()))
    assert rows == [
        {"name": "John", "last_name": "Doe", "birthday": "1986-05-01"},
        {"name": "Jane", "last_name": "Roe", "birthday": "1988-11-16"},
    ]
    assert [r.line for r in rows] == [2, 3]


def test_custom_header_converter():
    rows = list(iter_rows("Name\nJohn\n", CsvOptions(header_converter=str.upper)))
    assert rows == [{"NAME": "John"}]


def test_fixed_headers_used_verbatim_and_first_line_is_data():
    opts = CsvOptions(headers=("name", "last_name", "birthday"))
    rows = list(iter_rows("John,Doe,1986-05-01\nJane,Roe,1988-11-16\n", opts))
    assert len(rows) == 2
    assert rows[0] == {"name": "John", "last_name": "Doe", "birthday": "1986-05-01"}


def test_fixed_headers_column_count_mismatch():
    opts = CsvOptions(headers=("name", "last_name"))
    with pytest.raises(ParseError) as exc_info:
        list(iter_rows("John,Doe,1986-05-01\n", opts))
    assert exc_info.value.line == 1


def test_read_headers_column_count_mismatch():
    with pytest.raises(ParseError, match="expected 3 fields"):
        list(iter_rows("Name,Last name,Birthday\nJohn,Doe\n", CsvOptions()))


def test_headerless_rows_keyed_by_position():
    rows = list(iter_rows("John,Doe\nJane,Roe\n", CsvOptions(headers=False)))
    assert rows == [{0: "John", 1: "Doe"}, {0: "Jane", 1: "Roe"}]


def test_duplicate_headers():
    with pytest.raises(ParseError, match="duplicate"):
        list(iter_rows("Name,name\nJohn,Doe\n", CsvOptions()))


# ── rows ───────────────────────────────────────────────────────────────

def test_blank_lines_are_skipped():
    text = "\n\nName,Last name\n\nJohn,Doe\n,\n\nJane,Roe\n\n"
    rows = list(iter_rows(text, CsvOptions()))
    assert [r["name"] for r in rows] == ["John", "Jane"]


def test_windows_line_endings():
    rows = list(iter_rows("Name,Last name\r\nJohn,Doe\r\n", CsvOptions()))
    assert rows == [{"name": "John", "last_name": "Doe"}]


@pytest.mark.parametrize("delimiter", [";", "\t"])
def test_other_delimiters(delimiter):
    text = AUTHORS.replace(",", delimiter)
    rows = list(iter_rows(text, CsvOptions(delimiter=delimiter)))
    assert [r["last_name"] for r in rows] == ["Doe", "Roe"]


def test_quoted_fields_keep_delimiters_and_newlines():
    text = 'Name,Last name\n"Doe, John","multi\nline"\n'
    rows = list(iter_rows(text, CsvOptions()))
    assert rows == [{"name": "Doe, John", "last_name": "multi\nline"}]


@pytest.mark.parametrize("text", [
    'Name,Last name\n"John,Doe\n',
    'Name,Last name\nJohn,"Do"e\n',
])
def test_malformed_quotes_raise_parse_error(text):
    with pytest.raises(ParseError) as exc_info:
        list(iter_rows(text, CsvOptions()))
    assert exc_info.value.line is not None


def test_iteration_is_lazy():
    text = "Name\nJohn\n\"broken\n"
    rows = iter_rows(text, CsvOptions())
    assert next(rows) == {"name": "John"}
    with pytest.raises(ParseError):
        next(rows)


def test_each_call_restarts_from_the_top():
    opts = CsvOptions()
    assert list(iter_rows(AUTHORS, opts)) == list(iter_rows(AUTHORS, opts))


@pytest.mark.parametrize("text, expected", [
    ("", 0),
    ("Name,Last name\n", 0),
    ("\n\n", 0),
    (AUTHORS, 2),
])
def test_scan_counts_data_rows(text, expected):
    assert scan(text, CsvOptions()) == expected
